from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Server configuration
PORT = config.get("PORT", 8090)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "0.0.0.0")

# GigaChat API configuration
# GIGACHAT_API_KEY is the base64 "client_id:client_secret" authorization key
# issued in the developer console, sent as-is in the Basic auth header.
GIGACHAT_API_URL = config.get("GIGACHAT_API_URL", "https://gigachat.devices.sberbank.ru/api/v1")
GIGACHAT_API_KEY = config.get("GIGACHAT_API_KEY", "")
GIGACHAT_MODEL = config.get("GIGACHAT_MODEL", "GigaChat")

# OAuth configuration
# Scope is GIGACHAT_API_PERS for individuals, GIGACHAT_API_B2B / GIGACHAT_API_CORP for businesses
GIGACHAT_AUTH_URL = config.get("GIGACHAT_AUTH_URL", "https://ngw.devices.sberbank.ru:9443/api/v2/oauth")
GIGACHAT_SCOPE = config.get("GIGACHAT_SCOPE", "GIGACHAT_API_PERS")

# The gateway certificates are issued by the Russian national CA, which is
# missing from most trust stores. Either install the CA or disable verification.
GIGACHAT_VERIFY_SSL = config.get("GIGACHAT_VERIFY_SSL", True)

# Serialize token refreshes so concurrent callers share one exchange
TOKEN_SINGLE_FLIGHT = config.get("TOKEN_SINGLE_FLIGHT", False)

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Read timeout: Time between receiving data chunks, important for detecting stalled streams
READ_TIMEOUT = config.get("READ_TIMEOUT", 60.0)
# Request timeout: Read timeout for non-streaming requests, which answer only
# once the whole completion is generated
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 120.0)
# Stream timeout: Write and pool timeout for all requests
STREAM_TIMEOUT = config.get("STREAM_TIMEOUT", 600.0)

# Stream tracing / debugging
STREAM_TRACE_ENABLED = config.get("STREAM_TRACE_ENABLED", False)
STREAM_TRACE_DIR = config.get("STREAM_TRACE_DIR", "stream_traces")
STREAM_TRACE_MAX_BYTES = config.get("STREAM_TRACE_MAX_BYTES", 262144)

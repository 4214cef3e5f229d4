"""Default collector endpoints and client configuration values."""

SDK_VERSION = "p00"

BASE_API_URL = "http://api.geo.kontagent.net/api/v1/"
BASE_HTTPS_API_URL = "https://api.geo.kontagent.net/api/v1/"
BASE_TEST_SERVER_URL = "http://test-server.kontagent.com/api/v1/"

DEFAULT_CLIENT_CONFIG = {
    "use_test_server": False,
    "use_https": False,
    "validate_params": False,
    "timeout_s": 10.0,
}

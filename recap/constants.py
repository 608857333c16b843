"""Names shared by the API and its clients."""

ACCESS_TOKEN_COOKIE = "recap_access_token"
EXPIRES_AT_COOKIE = "recap_expires_at"
PROVIDER_COOKIE = "recap_provider"
STATE_COOKIE = "recap_oauth_state"

RECAP_COOKIES = (ACCESS_TOKEN_COOKIE, EXPIRES_AT_COOKIE, PROVIDER_COOKIE, STATE_COOKIE)

"""Development-time identities used when auth is bypassed."""

# DEV ONLY: served by auth_mode="dev"; refused when environment="production".
DEV_USER_ID = "dev-user-mock-id"
DEV_USER_EMAIL = "dev@example.com"
DEV_USER_NAME = "Development User"

# Embedded (iframe) mode: the host page owns the real identity.
IFRAME_USER_ID = "iframe-user"
IFRAME_USER_EMAIL = "iframe@embedded.app"
IFRAME_USER_NAME = "Iframe User"

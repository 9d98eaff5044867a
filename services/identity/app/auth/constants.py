# ── Lifetimes ────────────────────────────────────────────────────────────────
SESSION_TOKEN_EXPIRE_SECONDS: int = 86_400   # 24 hours
OTP_VERIFIED_EXPIRE_SECONDS: int = 300       # 5 minutes between verify and use

# ── Phone numbers ────────────────────────────────────────────────────────────
# A bare national number is at most this long; anything longer already
# carries its country prefix.
NATIONAL_NUMBER_MAX_DIGITS: int = 10

# ── Messages ─────────────────────────────────────────────────────────────────
WELCOME_SMS_BODY: str = "Welcome to Hope-AI! Your account has been successfully created."

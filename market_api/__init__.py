"""Market API — accounts, OTP verification and role-based access control."""

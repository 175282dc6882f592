"""TOTP helpers for two-factor authentication"""
import pyotp
from django.conf import settings
from django.core import signing

CHALLENGE_SALT = 'protekcms.two-factor'
CHALLENGE_MAX_AGE = 300  # seconds a password-verified login may wait for its code


def generate_secret():
    return pyotp.random_base32()


def provisioning_uri(user, secret):
    """otpauth:// URI an authenticator app turns into an account entry"""
    return pyotp.TOTP(secret).provisioning_uri(
        name=user.email or user.username,
        issuer_name=settings.TWO_FACTOR_ISSUER,
    )


def verify_token(secret, token):
    if not secret or not token:
        return False
    return pyotp.TOTP(secret).verify(str(token).strip(), valid_window=1)


def make_login_challenge(user):
    """Signed token proving the password step of a two-factor login succeeded"""
    return signing.dumps({'user_id': user.pk}, salt=CHALLENGE_SALT)


def read_login_challenge(challenge):
    """Return the user id carried by a challenge, or None if it is invalid or expired"""
    try:
        data = signing.loads(challenge, salt=CHALLENGE_SALT, max_age=CHALLENGE_MAX_AGE)
    except signing.BadSignature:
        return None
    return data.get('user_id')

import base64
import binascii
import hashlib
import hmac


def verify_shopify_hmac(request_body: bytes, hmac_header: str, secret: str) -> bool:
    """Verify the HMAC-SHA256 signature from a Shopify webhook request.

    Shopify sends an X-Shopify-Hmac-Sha256 header containing a Base64-encoded
    HMAC-SHA256 digest of the raw request body, keyed with the app's
    webhook secret.

    Args:
        request_body: The raw HTTP request body bytes.
        hmac_header: The value of X-Shopify-Hmac-Sha256 header.
        secret: The configured webhook secret.

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not hmac_header:
        return False
    digest = hmac.new(secret.encode("utf-8"), request_body, hashlib.sha256).digest()
    try:
        received = base64.b64decode(hmac_header, validate=True)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(digest, received)


def is_authentic_webhook(request_body: bytes, hmac_header: str, secret: str) -> bool:
    """Return True when the request passes signature checks.

    An empty ``secret`` disables verification so deployments without a
    configured secret keep accepting deliveries.
    """
    if not secret:
        return True
    return verify_shopify_hmac(request_body, hmac_header, secret)

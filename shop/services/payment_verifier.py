# shop/services/payment_verifier.py
import requests

from shop.domain.ports import VerificationResult
from shop.utils.retry import http_retry
from shop.utils.settings import PORTONE_API_URL, IMP_KEY, IMP_SECRET, PAYMENT_HTTP_TIMEOUT
from shop.utils.logging import get_logger

logger = get_logger(__name__)


class PortOneVerifier:
    """
    Weryfikacja platnosci w PortOne (iamport) REST API
    1. token dostepu za IMP_KEY/IMP_SECRET
    2. GET /payments/{imp_uid}
    3. akceptacja tylko gdy status == paid i merchant_uid sie zgadza
    verify() nigdy nie rzuca wyjatku, zawsze VerificationResult
    """

    def __init__(
        self,
        base_url: str | None = None,
        imp_key: str | None = None,
        imp_secret: str | None = None,
        timeout: float = PAYMENT_HTTP_TIMEOUT,
    ):
        self.base_url = (base_url or PORTONE_API_URL).rstrip("/")
        self.imp_key = imp_key if imp_key is not None else IMP_KEY
        self.imp_secret = imp_secret if imp_secret is not None else IMP_SECRET
        self.timeout = timeout

    @staticmethod
    def _unwrap(resp: requests.Response, rejected: str) -> dict:
        """PortOne envelope: ``{"code": 0, "response": {...}}``."""
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, dict):
            raise ValueError(f"unexpected response body: {body!r}")
        if body.get("code") != 0 or not isinstance(body.get("response"), dict):
            raise ValueError(body.get("message") or rejected)
        return body["response"]

    @http_retry()
    def _get_access_token(self) -> str:
        url = f"{self.base_url}/users/getToken"
        logger.info(f"PortOne POST {url}")
        resp = requests.post(
            url,
            json={"imp_key": self.imp_key, "imp_secret": self.imp_secret},
            timeout=self.timeout,
        )
        return self._unwrap(resp, "token request rejected")["access_token"]

    @http_retry()
    def _fetch_payment(self, imp_uid: str, token: str) -> dict:
        url = f"{self.base_url}/payments/{imp_uid}"
        logger.info(f"PortOne GET {url}")
        resp = requests.get(url, headers={"Authorization": f"Bearer {token}"}, timeout=self.timeout)
        return self._unwrap(resp, "payment not found")

    def verify(self, imp_uid: str, merchant_uid: str) -> VerificationResult:
        try:
            token = self._get_access_token()
            payment = self._fetch_payment(imp_uid, token)
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.warning(f"Payment verification for {imp_uid} failed: {e}")
            return VerificationResult(success=False, message=f"Payment provider error: {e}")

        if payment.get("status") != "paid":
            return VerificationResult(
                success=False,
                data=payment,
                message=f"Payment is not completed (status: {payment.get('status')})",
            )

        if payment.get("merchant_uid") != merchant_uid:
            return VerificationResult(success=False, data=payment, message="Merchant reference does not match")

        logger.info(f"Payment {imp_uid} verified for {merchant_uid}")
        return VerificationResult(success=True, data=payment)

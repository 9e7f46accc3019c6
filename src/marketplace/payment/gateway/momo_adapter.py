"""MTN MoMo collection adapter.

Speaks the Collection API: a token exchange with the API user and key, then
bearer-authenticated request-to-pay and status calls. Every call carries the
configured timeout.
"""

import time

import requests
import structlog

from marketplace.config import Settings
from marketplace.payment.gateway.port import (
    GatewayError,
    GatewayTimeout,
    MobileMoneyGateway,
    PaymentRequest,
    StatusResult,
)

logger = structlog.get_logger(__name__)

# Refresh the access token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else f"{amount:.2f}"


def _reason_text(reason) -> str | None:
    if isinstance(reason, dict):
        return reason.get("message") or reason.get("code")
    return reason


class MomoGateway(MobileMoneyGateway):
    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    @property
    def base_url(self) -> str:
        return self.settings.momo_base_url.rstrip("/")

    def _send(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.settings.momo_timeout_seconds, **kwargs)
        except requests.Timeout as exc:
            logger.warning("MoMo request timed out", method=method, path=path)
            raise GatewayTimeout(f"MoMo {method} {path} timed out") from exc
        except requests.RequestException as exc:
            raise GatewayError(f"MoMo {method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("MoMo request rejected", method=method, path=path, status_code=response.status_code)
            raise GatewayError(f"MoMo {method} {path} returned {response.status_code}: {response.text[:200]}")
        return response

    def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = self._send(
            "POST",
            "/collection/token/",
            auth=(self.settings.momo_api_user, self.settings.momo_api_key),
            headers={"Ocp-Apim-Subscription-Key": self.settings.momo_subscription_key},
        )
        data = response.json()
        self._token = data["access_token"]
        self._token_expires_at = time.monotonic() + int(data.get("expires_in", 3600)) - TOKEN_EXPIRY_MARGIN
        return self._token

    def _headers(self, reference_id: str | None = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self._access_token()}",
            "X-Target-Environment": self.settings.momo_environment,
            "Ocp-Apim-Subscription-Key": self.settings.momo_subscription_key,
        }
        if reference_id:
            headers["X-Reference-Id"] = reference_id
        return headers

    def request_to_pay(self, request: PaymentRequest) -> str:
        headers = self._headers(request.reference_id)
        headers["Content-Type"] = "application/json"
        if self.settings.momo_callback_url:
            headers["X-Callback-Url"] = self.settings.momo_callback_url

        self._send(
            "POST",
            "/collection/v1_0/requesttopay",
            headers=headers,
            json={
                "amount": _format_amount(request.amount),
                "currency": request.currency,
                "externalId": request.external_id,
                "payer": {"partyIdType": "MSISDN", "partyId": request.payer_phone.lstrip("+")},
                "payerMessage": request.payer_message,
                "payeeNote": request.payee_note,
            },
        )
        logger.info("MoMo request to pay accepted", external_id=request.external_id, reference_id=request.reference_id)
        return request.reference_id

    def get_status(self, reference_id: str) -> StatusResult:
        response = self._send("GET", f"/collection/v1_0/requesttopay/{reference_id}", headers=self._headers())
        data = response.json()
        return StatusResult(
            status=data.get("status", "PENDING"),
            financial_transaction_id=data.get("financialTransactionId"),
            reason=_reason_text(data.get("reason")),
            raw=data,
        )

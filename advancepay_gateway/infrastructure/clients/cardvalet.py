"""Card valet HTTP client for digital wallet single sign-on"""

import logging
import ssl
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from advancepay_gateway.config import Settings, settings
from advancepay_gateway.domain.exceptions import CardValetError
from advancepay_gateway.infrastructure.observability.metrics import cardvalet_latency_histogram

logger = logging.getLogger("advancepay.clients.cardvalet")

SSO_PATH = "rws/CardControlRWS_V0103/getSSOInfo"


class DigitalWalletHeaderSignature(BaseModel):
    """Request body for getSSOInfo; field names follow the vendor's JSON"""

    schemaVersion: str
    clientId: str
    system: Optional[str] = None
    clientApplicationName: str
    clientVersion: str
    clientVendorName: str
    clientAuditId: str
    subscriberRefID: str
    ssoDeviceId: str


class CsStatus(BaseModel):
    statusCode: str
    statusDesc: Optional[str] = None


class DigitalWalletSsoResponse(BaseModel):
    """getSSOInfo response; unknown vendor fields are ignored"""

    model_config = ConfigDict(extra="ignore")

    csStatus: CsStatus
    ssoPayload: Optional[str] = None
    subscriberRefId: Optional[str] = None
    clientAuditId: Optional[str] = None
    systemRecordIdentifier: Optional[str] = None


def build_ssl_context(
    certificate_file: Optional[str],
    key_file: Optional[str] = None,
    password: Optional[str] = None,
) -> ssl.SSLContext:
    """TLS context presenting the client certificate when one is configured"""
    context = ssl.create_default_context()
    if certificate_file:
        context.load_cert_chain(certfile=certificate_file, keyfile=key_file, password=password)
    else:
        logger.warning("Card valet client certificate not configured")
    return context


class CardValetClient:
    """Client for the card valet SSO web service (mutual TLS + basic auth)"""

    def __init__(
        self,
        base_url: str | None = None,
        user_id: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        verify: ssl.SSLContext | bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        config: Settings | None = None,
    ):
        config = config or settings
        self.base_url = (base_url or config.digital_wallet_endpoint_address).rstrip("/")
        self.user_id = user_id if user_id is not None else config.digital_wallet_user_id
        self.password = password if password is not None else config.digital_wallet_password.get_secret_value()
        self.timeout = config.http_timeout_seconds if timeout is None else timeout
        self.verify = verify
        self.transport = transport
        self.certificate_file = config.digital_wallet_certificate_file
        self.certificate_key_file = config.digital_wallet_certificate_key_file
        cert_password = config.digital_wallet_certificate_password
        self.certificate_password = cert_password.get_secret_value() if cert_password else None

    def _ssl_verify(self) -> ssl.SSLContext | bool:
        if self.verify is not None:
            return self.verify
        return build_ssl_context(self.certificate_file, self.certificate_key_file, self.certificate_password)

    async def get_sso_info(self, signature: DigitalWalletHeaderSignature) -> DigitalWalletSsoResponse:
        """
        POST the header signature to getSSOInfo.

        Raises:
            CardValetError: On timeout, transport or HTTP errors, or an unparseable response
        """
        client_kwargs = {"timeout": self.timeout, "auth": (self.user_id, self.password)}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        else:
            try:
                client_kwargs["verify"] = self._ssl_verify()
            except OSError as e:
                raise CardValetError(f"Unable to load card valet client certificate: {e}") from e

        async with httpx.AsyncClient(**client_kwargs) as client:
            try:
                with cardvalet_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/{SSO_PATH}",
                        json=signature.model_dump(),
                        headers={"Accept": "application/json"},
                    )
                response.raise_for_status()
                logger.debug("Card valet response received", extra={"status_code": response.status_code})
                return DigitalWalletSsoResponse.model_validate(response.json())

            except httpx.TimeoutException as e:
                raise CardValetError(f"Card valet timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CardValetError(f"Card valet error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CardValetError(f"Card valet unavailable: {e}") from e
            except (ValidationError, ValueError) as e:
                raise CardValetError(f"Invalid card valet response: {e}") from e

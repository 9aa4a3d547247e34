"""Digital wallet SSO bridge - exchanges member identifiers for a card valet SSO payload"""

import logging
import uuid

from advancepay_gateway.config import Settings, settings as default_settings
from advancepay_gateway.domain.exceptions import CardValetError
from advancepay_gateway.domain.models import CardValetSsoResult, ErrorDetail, FailureKind
from advancepay_gateway.infrastructure.clients.cardvalet import CardValetClient, DigitalWalletHeaderSignature
from advancepay_gateway.infrastructure.observability.metrics import cardvalet_request_counter

logger = logging.getLogger("advancepay.digital_wallet")

NO_ACCESS = "no access"
VENDOR_SUCCESS = "0"
VENDOR_FAILURE = "1"


class DigitalWalletSsoService:
    def __init__(self, client: CardValetClient | None = None, config: Settings | None = None):
        self.config = config or default_settings
        self.client = client or CardValetClient(config=self.config)

    def build_signature(self, account_identifier: str, device_identifier: str) -> DigitalWalletHeaderSignature:
        return DigitalWalletHeaderSignature(
            schemaVersion=self.config.digital_wallet_schema_version,
            clientId=self.config.digital_wallet_client_id,
            system=self.config.digital_wallet_system[0] if self.config.digital_wallet_system else None,
            clientApplicationName=self.config.digital_wallet_client_application_name,
            clientVersion=self.config.digital_wallet_client_version,
            clientVendorName=self.config.digital_wallet_client_vendor_name,
            clientAuditId=uuid.uuid4().hex[:12],
            subscriberRefID=account_identifier,
            ssoDeviceId=device_identifier,
        )

    async def request_sso(self, account_number: int, account_identifier: str, device_identifier: str) -> CardValetSsoResult:
        """
        Fetch the SSO payload the mobile app hands to the card valet app.

        Returns status "no access" when the feature is disabled. Vendor status
        "0" is success; anything else, including transport failures, is a
        failure carrying the vendor's status description.
        """
        if not self.config.digital_wallet_enabled:
            return CardValetSsoResult(success=False, status=NO_ACCESS)

        logger.info(
            "Digital wallet SSO request",
            extra={
                "account_number": account_number,
                "account_identifier": account_identifier,
                "device_identifier": device_identifier,
            },
        )

        signature = self.build_signature(account_identifier, device_identifier)
        try:
            response = await self.client.get_sso_info(signature)
        except CardValetError as e:
            cardvalet_request_counter.labels(status="error").inc()
            logger.error(f"Card valet SSO request failed: {e}", extra={"client_audit_id": signature.clientAuditId})
            return CardValetSsoResult(
                success=False,
                status=VENDOR_FAILURE,
                status_description="failure",
                failure_kind=FailureKind.VENDOR,
                error=ErrorDetail.from_exception(e),
            )

        status_code = response.csStatus.statusCode
        cardvalet_request_counter.labels(status=status_code).inc()

        if status_code != VENDOR_SUCCESS:
            return CardValetSsoResult(
                success=False,
                status=status_code,
                status_description=response.csStatus.statusDesc or "",
                failure_kind=FailureKind.VENDOR,
            )

        return CardValetSsoResult(
            success=True,
            status=status_code,
            status_description=response.csStatus.statusDesc or "",
            sso_payload=response.ssoPayload,
            android_store_url=self.config.digital_wallet_android_store_url,
            ios_store_url=self.config.digital_wallet_ios_store_url,
            url_scheme=self.config.digital_wallet_url_scheme,
            package_name=self.config.digital_wallet_package_name,
        )

"""
SMS sandbox registration through Amazon SNS.

Registration is best-effort: a failure is logged and reported as False,
never raised, so it cannot undo a committed user record.
"""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.logging import setup_logger

logger = setup_logger(__name__)


class SmsSandboxNotifier:
    """Adds phone numbers to the SNS SMS sandbox destination list."""

    def __init__(self, sns_client=None):
        self._sns_client = sns_client

    @property
    def sns_client(self):
        if self._sns_client is None:
            self._sns_client = boto3.client("sns")
        return self._sns_client

    def register_phone_number(self, phone_number: str) -> bool:
        """
        Register a phone number as an SMS sandbox destination.

        :param phone_number: E.164 phone number.
        :return: True if SNS accepted the number, False otherwise.
        """
        try:
            self.sns_client.create_sms_sandbox_phone_number(PhoneNumber=phone_number)
            return True
        except ClientError as err:
            logger.warning(
                "Couldn't register phone number in SMS sandbox. Error: %s: %s",
                err.response["Error"]["Code"],
                err.response["Error"]["Message"],
            )
        except BotoCoreError as err:
            logger.warning(
                "Couldn't reach SNS to register phone number",
                extra={"error_type": type(err).__name__},
            )
        return False

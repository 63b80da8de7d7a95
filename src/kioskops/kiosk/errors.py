"""
Kiosk errors.
"""


class KioskError(Exception):
    """Base exception for kiosk and transfer policy operations."""

    pass


class KioskNotFoundError(KioskError):
    """Raised when the signer owns no cap for the requested kiosk."""

    def __init__(self, kiosk_id: str, owner: str):
        super().__init__(f"No KioskOwnerCap for kiosk {kiosk_id} owned by {owner}")
        self.kiosk_id = kiosk_id
        self.owner = owner


class TransferPolicyNotFoundError(KioskError):
    """Raised when the signer owns no cap for the requested transfer policy."""

    def __init__(self, policy_id: str, owner: str):
        super().__init__(f"No TransferPolicyCap for policy {policy_id} owned by {owner}")
        self.policy_id = policy_id
        self.owner = owner

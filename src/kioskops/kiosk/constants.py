"""
Kiosk network constants.

The kiosk extension package (personal kiosks and the standard transfer
policy rules) is published once per network.
"""

from kioskops.config.models import KioskNetwork

KIOSK_MODULE = "0x2::kiosk"
KIOSK_TYPE = "0x2::kiosk::Kiosk"
KIOSK_OWNER_CAP = "0x2::kiosk::KioskOwnerCap"
TRANSFER_POLICY_MODULE = "0x2::transfer_policy"
TRANSFER_POLICY_CAP_TYPE = "0x2::transfer_policy::TransferPolicyCap"

# Types of the dynamic fields created by kiosk operations
KIOSK_LOCK_FIELD_TYPE = "0x2::dynamic_field::Field<0x2::kiosk::Lock, bool>"
KIOSK_ITEM_FIELD_TYPE = (
    "0x2::dynamic_field::Field<0x2::dynamic_object_field::Wrapper<0x2::kiosk::Item>, 0x2::object::ID>"
)

KIOSK_RULES_PACKAGES = {
    KioskNetwork.MAINNET: "0x434b5bd8f6a7b05fede0ff46c6e511d71ea326ed38056e3bcd681d2d7c2a7879",
    KioskNetwork.TESTNET: "0xbd8fc1947cf119350184107a3087e2dc27efefa0dd82e25a1f699069fe81a585",
}


def get_rules_package_id(network: KioskNetwork | str) -> str:
    """Kiosk extension package id of a network."""
    return KIOSK_RULES_PACKAGES[KioskNetwork(network)]


def personal_kiosk_cap_type(package_id: str) -> str:
    return f"{package_id}::personal_kiosk::PersonalKioskCap"


def transfer_policy_cap_type(item_type: str) -> str:
    return f"{TRANSFER_POLICY_CAP_TYPE}<{item_type}>"

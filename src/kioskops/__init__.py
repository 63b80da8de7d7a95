"""
kioskops: operator commands for Sui kiosks and tokenized assets.

Each command builds one programmable transaction (mint, place, lock, list,
delist, personal kiosk creation or conversion, transfer policy rule edits,
package publish), signs it with the configured operator key, submits it to a
fullnode and reports the object the transaction created.

Example:
    from kioskops.config import load_config
    from kioskops.operations import OperatorContext, place_item

    config = load_config("kioskops.yaml")
    async with OperatorContext.from_config(config) as ctx:
        field_id = await place_item(ctx)
"""

from kioskops.version import __version__

__all__ = [
    "__version__",
]

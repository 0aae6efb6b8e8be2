"""Pre-built rules, usable directly in ``preconfigured_rules``."""

from archguard.rules.interface_prefix import NoPrefixForInterfacesRule
from archguard.rules.standard_streams import NoStandardStreamRule

__all__ = ["NoPrefixForInterfacesRule", "NoStandardStreamRule"]

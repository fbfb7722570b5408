"""
Eco rewards backend package root.

Absolute imports such as `from eco_rewards.db.session import get_db` resolve
from here whether the service runs from an installed wheel or from a checkout.
"""

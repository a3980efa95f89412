"""provisioning-inventory: report user provisioning settings for every Okta application.

Walks the Okta apps API, resolves each application's provisioning feature
(create/update/deactivate) and synchronized user attributes, and writes one
timestamped CSV (or JSON) row per application for offline review.
"""

__version__ = "0.3.1"

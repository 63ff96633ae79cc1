"""
Accounts App - Users, Subscription Tiers and Feature Access

Email-authenticated family members with JWT login. Each user carries a
subscription tier and optional per-feature overrides; every gated endpoint
in the other apps asks HasFeatureAccess whether the request may proceed.
"""

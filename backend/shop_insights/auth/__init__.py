"""
Authentication for Shop Insights.

- jwt: access token issuance and verification
- passwords: bcrypt helpers for admin accounts
- middleware: get_current_principal request dependency
"""

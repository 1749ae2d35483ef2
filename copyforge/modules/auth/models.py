# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration and magic links (auth.users table)
# - Session management and JWT issuing
# - Password hashing and reset flows

"""
Supabase Auth provides:
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

The browser session cookie (sb-access-token) carries the same JWT as the
Authorization header, so both are accepted by the API.
"""

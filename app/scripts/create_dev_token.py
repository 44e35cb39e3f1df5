# app/scripts/create_dev_token.py
import sys

from app.services.auth import create_access_token

# Defaults to a test student with id=1
user_id = int(sys.argv[1]) if len(sys.argv) > 1 else 1
role = sys.argv[2] if len(sys.argv) > 2 else "student"

token = create_access_token(user_id, role)
print(f"Authorization: Bearer {token}")

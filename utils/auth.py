# utils/auth.py
"""
Bearer-token verification.

Tokens are issued by the external identity provider and signed with
JWT_SECRET. Group memberships come from the "cognito:groups" claim (or a
plain "groups" claim).
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional

from fastapi import HTTPException, Request
from jose import JWTError, jwt

from config import JWT_ALGORITHM, JWT_SECRET

GROUP_CLAIMS = ("cognito:groups", "groups")


def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
          return payload
     except JWTError:
          raise HTTPException(status_code=403, detail="Invalid token")


def groups_from_claims(claims: Mapping) -> List[str]:
     for claim in GROUP_CLAIMS:
          value = claims.get(claim)
          if value is None:
               continue
          if isinstance(value, str):
               return [g.strip() for g in value.split(",") if g.strip()]
          return [str(g) for g in value]
     return []


def create_token(subject: str, groups: Iterable[str], email: Optional[str] = None, expires_minutes: int = 60) -> str:
     """Sign a token with the local secret, for development and tests."""
     claims = {
          "sub": subject,
          "groups": list(groups),
          "exp": datetime.utcnow() + timedelta(minutes=expires_minutes),
     }
     if email:
          claims["email"] = email
     return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Stockship mock auth backend")


class LoginBody(BaseModel):
    email: str
    password: str
    role: Optional[str] = None


def _profile(user_id: int, email: str, user_type: str, name: str) -> dict:
    return {"id": user_id, "email": email, "name": name, "userType": user_type}


EMPLOYEE = _profile(2, "omar@stockship.com", "EMPLOYEE", "Omar")
TRADER = _profile(7, "omar@stockship.com", "TRADER", "Omar Trading Co.")
CLIENT = _profile(11, "omar@stockship.com", "CLIENT", "Omar")

ACCOUNTS = {
    "admin@stockship.com": {
        "password": "admin123",
        "data": {
            "token": "tok-admin",
            "user": _profile(1, "admin@stockship.com", "ADMIN", "Admin"),
            "availableRoles": ["ADMIN"],
        },
    },
    # Employee who also trades and buys: one token per role
    "omar@stockship.com": {
        "password": "omar123",
        "data": {
            "token": "tok-employee",
            "user": EMPLOYEE,
            "availableRoles": ["EMPLOYEE", "TRADER", "CLIENT"],
            "roleTokens": {"TRADER": "tok-trader", "CLIENT": "tok-client"},
            "roleProfiles": {"TRADER": TRADER, "CLIENT": CLIENT},
        },
    },
    # Client with a linked trader profile but a single token
    "sara@stockship.com": {
        "password": "sara123",
        "data": {
            "accessToken": "tok-sara",
            "user": _profile(21, "sara@stockship.com", "USER", "Sara"),
            "availableRoles": ["CLIENT", "TRADER"],
            "linkedProfiles": [_profile(22, "sara@stockship.com", "TRADER", "Sara Imports")],
        },
    },
}

REJECTIONS = {
    "locked@stockship.com": (403, {"message": "Account is disabled"}, {}),
    "busy@stockship.com": (429, {"message": "Too many login attempts"}, {"Retry-After": "30"}),
    "broken@stockship.com": (500, {"message": "Internal server error"}, {}),
}


@app.post("/auth/login")
async def login(body: LoginBody):
    if body.email in REJECTIONS:
        status_code, content, headers = REJECTIONS[body.email]
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    account = ACCOUNTS.get(body.email)
    if account is None or account["password"] != body.password:
        return JSONResponse(status_code=401, content={"message": "Invalid email or password"})

    return {"success": True, "data": account["data"]}

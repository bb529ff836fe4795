from fastapi import APIRouter, Depends
from pymongo.database import Database

from ..config import Settings
from ..deps import get_db, get_mailer, get_settings, get_tokens
from ..mail import LogMailer
from ..models import EmailRequest, LoginRequest, SignupRequest, VerifyOtpRequest
from ..responses import respond
from ..security import TokenService
from ..users import Accounts

router = APIRouter(tags=["auth"])


def get_accounts(
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    mailer: LogMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> Accounts:
    return Accounts(db, tokens, mailer, settings.otp_ttl_minutes)


@router.post("/auth/signup")
def signup(body: SignupRequest, accounts: Accounts = Depends(get_accounts)):
    return respond(accounts.signup(body))


@router.post("/auth/verify-otp")
def verify_otp(body: VerifyOtpRequest, accounts: Accounts = Depends(get_accounts)):
    return respond(accounts.verify_otp(body))


@router.post("/auth/resend-otp")
def resend_otp(body: EmailRequest, accounts: Accounts = Depends(get_accounts)):
    return respond(accounts.resend_otp(body.email))


@router.post("/auth/login")
def login(body: LoginRequest, accounts: Accounts = Depends(get_accounts)):
    return respond(accounts.login(body))


@router.post("/admin/login")
def admin_login(body: LoginRequest, accounts: Accounts = Depends(get_accounts)):
    return respond(accounts.login(body, admin=True))

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


class PasswordTooLongError(ValueError):
    pass


def _check_bcrypt_len(password: str):
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise PasswordTooLongError("Password too long (bcrypt max 72 bytes)")

def hash_password(password: str):
    _check_bcrypt_len(password)
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str):
    if len(plain_password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    return pwd_context.verify(plain_password, hashed_password)

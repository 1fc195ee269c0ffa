import uuid
from pydantic import BaseModel, EmailStr


# Minimal representation of the user behind a validated Supabase token
class UserInToken(BaseModel):
    id: uuid.UUID
    email: EmailStr | None = None

from pydantic import BaseModel


class Principal(BaseModel):
    """The verified identity a request runs as."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

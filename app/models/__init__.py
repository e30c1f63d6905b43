from app.database import Base
from app.models.movie import Movie
from app.models.user import User, Role, RoleName, user_roles

# This ensures all models are registered with Base.metadata
__all__ = ["Base", "Movie", "User", "Role", "RoleName", "user_roles"]

from brewhaven.core.config import settings
from brewhaven.core.database import get_db, Base, get_db_session
from brewhaven.core.security import create_access_token, decode_token

from __future__ import annotations

from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_sock import Sock
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
sock = Sock()

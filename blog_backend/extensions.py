from flask_pymongo import PyMongo
from flask_jwt_extended import JWTManager
from flask_bcrypt import Bcrypt

# Extension instances are created here and bound to the app in create_app().
mongo = PyMongo()
jwt = JWTManager()
bcrypt = Bcrypt()

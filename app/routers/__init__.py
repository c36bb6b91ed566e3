# Routers module for FanPass API
from app.routers import auth
from app.routers import oauth
from app.routers import events
from app.routers import dashboard
from app.routers import music

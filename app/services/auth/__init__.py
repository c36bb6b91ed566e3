# Auth providers
from app.services.auth.base import AuthProvider
from app.services.auth.password import PasswordAuthProvider
from app.services.auth.spotify import SpotifyAuthProvider


def get_password_provider() -> PasswordAuthProvider:
    """Dependency returning the email/password provider"""
    return PasswordAuthProvider()


def get_spotify_provider() -> SpotifyAuthProvider:
    """Dependency returning the Spotify linking provider"""
    return SpotifyAuthProvider()

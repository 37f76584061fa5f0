from fscs_backend.auth.identity import Identity, person_user_name

__all__ = ["Identity", "person_user_name"]

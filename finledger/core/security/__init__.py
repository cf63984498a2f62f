from .password import check_password, hash_password

__all__ = ["check_password", "hash_password"]

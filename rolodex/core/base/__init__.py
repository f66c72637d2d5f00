from rolodex.core.base.rolodex_base import Rolodex, RolodexABC, RolodexABCMeta, RolodexMeta

__all__ = ["Rolodex", "RolodexABC", "RolodexABCMeta", "RolodexMeta"]

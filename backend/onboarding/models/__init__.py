from .vendors import VendorStatusRecord
from .merchants import Merchant
from .equipment import EquipmentProfile, EquipmentItem
from .menu import MenuCategory, MenuProduct
from .banners import BannerProfile

__all__ = [
    'VendorStatusRecord',
    'Merchant',
    'EquipmentProfile', 'EquipmentItem',
    'MenuCategory', 'MenuProduct',
    'BannerProfile',
]

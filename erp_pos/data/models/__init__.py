#all models imported so SQLAlchemy registers them in Base.metadata

from erp_pos.data.models.product import ProductModel
from erp_pos.data.models.sale import SaleModel
from erp_pos.data.models.sale_item import SaleItemModel
from erp_pos.data.models.sale_sequence import SaleSequenceModel
from erp_pos.data.models.user import ProfileModel, UserRoleModel
from erp_pos.data.models.permission import ModulePermissionModel
from erp_pos.data.models.notification import NotificationModel

__all__ = [
    "ProductModel",
    "SaleModel",
    "SaleItemModel",
    "SaleSequenceModel",
    "ProfileModel",
    "UserRoleModel",
    "ModulePermissionModel",
    "NotificationModel",
]

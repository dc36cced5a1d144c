from app.models.receipt import ReceiptItemModel, ReceiptModel

__all__ = ["ReceiptModel", "ReceiptItemModel"]

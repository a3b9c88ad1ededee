from models.batch import Batch
from models.daily_monitoring import DailyMonitoring
from models.feed import FeedTransaction
from models.sale import Sale
from models.medicine import MedicineEntry
from models.audit_log import AuditLog

__all__ = ['AuditLog', 'Batch', 'DailyMonitoring', 'FeedTransaction', 'MedicineEntry', 'Sale',]

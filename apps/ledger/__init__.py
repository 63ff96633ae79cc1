"""
Ledger App - Family Transactions

The shared family ledger: who the money belongs to (origins), where it is
held (banks), the Portuguese category hierarchy, and every income or
expense line. Also hosts the audit log used by bank sync and AI
categorization to record what happened and why.

Architecture:
- Models: Origin, Bank, Category, Transaction, AuditLog
- Services: transaction_management, reference_data, audit
- Views: TransactionViewSet with bulk actions, reference data lists
"""

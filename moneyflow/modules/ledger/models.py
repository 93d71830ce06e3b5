"""Ledger module models."""
from typing import Any, Dict

from moneyflow.core.extensions import db
from moneyflow.core.money import to_amount


class LedgerRecord:
    """Dict conversion shared by all ledger tables."""

    # Columns stored as Numeric and returned as Decimal
    AMOUNT_FIELDS = ()

    @classmethod
    def field_names(cls):
        return [column.name for column in cls.__table__.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names()}

    @classmethod
    def coerce(cls, record: Dict[str, Any]) -> Dict[str, Any]:
        """Validate field names and normalize amount values of a raw record."""
        names = set(cls.field_names())
        unknown = set(record) - names
        if unknown:
            raise ValueError(f"Unknown fields for {cls.__tablename__}: {', '.join(sorted(unknown))}")

        cleaned = dict(record)
        for field in cls.AMOUNT_FIELDS:
            value = cleaned.get(field)
            if value is not None:
                cleaned[field] = to_amount(value)
        return cleaned


class Envelope(LedgerRecord, db.Model):
    """Top-level grouping of spending categories."""
    __tablename__ = 'envelopes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    description = db.Column(db.Text, default='')
    display_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<Envelope {self.name}>'


class Category(LedgerRecord, db.Model):
    """Budget line within an envelope."""
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    envelope_id = db.Column(db.Integer, db.ForeignKey('envelopes.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, default='')
    display_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<Category {self.name}>'


class Budget(LedgerRecord, db.Model):
    """Allocated capacity of a category in a period."""
    __tablename__ = 'budgets'
    AMOUNT_FIELDS = ('budget_amount', 'carried_over', 'total_budget')

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    period = db.Column(db.String(7), nullable=False, index=True)  # YYYY-MM
    budget_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    carried_over = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_budget = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    __table_args__ = (db.UniqueConstraint('category_id', 'period'),)

    def __repr__(self):
        return f'<Budget {self.category_id} {self.period} {self.total_budget}>'


class Income(LedgerRecord, db.Model):
    """Income model."""
    __tablename__ = 'incomes'
    AMOUNT_FIELDS = ('amount',)

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(10), nullable=False)
    period = db.Column(db.String(7), nullable=False, index=True)
    source = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    note = db.Column(db.Text, default='')
    is_allocated = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<Income {self.source} {self.amount}>'


class Allocation(LedgerRecord, db.Model):
    """Provenance of a transfer from income (or carry-over) into a budget."""
    __tablename__ = 'allocations'
    AMOUNT_FIELDS = ('amount',)

    id = db.Column(db.Integer, primary_key=True)
    income_id = db.Column(db.Integer, db.ForeignKey('incomes.id'), nullable=True, index=True)
    budget_id = db.Column(db.Integer, db.ForeignKey('budgets.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    type = db.Column(db.String(20), nullable=False, default='income')  # 'income' or 'carryover'
    note = db.Column(db.Text, default='')
    created_at = db.Column(db.String(32))

    __table_args__ = (db.CheckConstraint("type IN ('income', 'carryover')"),)

    def __repr__(self):
        return f'<Allocation {self.type} {self.amount} -> budget {self.budget_id}>'


class Expense(LedgerRecord, db.Model):
    """Expense model."""
    __tablename__ = 'expenses'
    AMOUNT_FIELDS = ('amount',)

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(10), nullable=False)
    period = db.Column(db.String(7), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    note = db.Column(db.Text, default='')
    is_over_budget = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<Expense {self.amount} category {self.category_id}>'


class Subsidy(LedgerRecord, db.Model):
    """Spending capacity lent by one category to another for an expense."""
    __tablename__ = 'subsidies'
    AMOUNT_FIELDS = ('amount',)

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(db.Integer, db.ForeignKey('expenses.id'), nullable=False, index=True)
    from_category_id = db.Column(db.Integer, nullable=False, index=True)  # kept when the donor is deleted
    to_category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    period = db.Column(db.String(7), nullable=False, index=True)
    note = db.Column(db.Text, default='')
    created_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<Subsidy {self.from_category_id} -> {self.to_category_id} {self.amount}>'


class Carryover(LedgerRecord, db.Model):
    """End-of-period settlement decision for a category."""
    __tablename__ = 'carryovers'
    AMOUNT_FIELDS = ('remaining_budget', 'carried_amount')

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    from_period = db.Column(db.String(7), nullable=False, index=True)
    to_period = db.Column(db.String(7), nullable=False)
    remaining_budget = db.Column(db.Numeric(15, 2), nullable=False)
    carried_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    action = db.Column(db.String(10), nullable=False)  # 'carry' or 'reset'
    note = db.Column(db.Text, default='')
    created_at = db.Column(db.String(32))

    __table_args__ = (db.CheckConstraint("action IN ('carry', 'reset')"),)

    def __repr__(self):
        return f'<Carryover {self.category_id} {self.from_period}->{self.to_period} {self.action}>'


class MonthlySnapshot(LedgerRecord, db.Model):
    """Cached dashboard summary for a period."""
    __tablename__ = 'monthly_snapshots'
    AMOUNT_FIELDS = ('total_income', 'total_expense', 'total_budget', 'total_remaining', 'saved_amount')

    id = db.Column(db.Integer, primary_key=True)
    period = db.Column(db.String(7), nullable=False, unique=True)
    total_income = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_expense = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_budget = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    total_remaining = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    saved_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    budget_utilization = db.Column(db.Float, nullable=False, default=0.0)
    over_budget_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.String(32))
    updated_at = db.Column(db.String(32))

    def __repr__(self):
        return f'<MonthlySnapshot {self.period}>'

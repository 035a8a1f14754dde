"""Static vocabulary for query intent and entity extraction. Immutable module-level data."""
from __future__ import annotations
from types import MappingProxyType
from typing import Tuple

from models.intent import PrimaryIntent
from models.schema import Category

FINANCIAL_KEYWORDS = frozenset({
    "money", "finance", "financial", "spend", "spent", "spending",
    "expense", "expenses", "income", "balance", "transaction", "transactions",
    "payment", "payments", "mpesa", "m-pesa", "account", "bank", "banking",
    "budget", "budgeting", "save", "saving", "savings", "cost", "costs",
    "bill", "bills", "debt", "loan", "loans", "credit", "salary", "wage",
    "wages", "earnings", "ksh", "shilling", "shillings", "cash", "paid",
    "pay", "paying", "purchase", "bought", "buy", "buying", "price",
    "category", "categories", "statement", "statements", "receipt", "receipts",
})

# Checked in order; the first group that matches sets the primary intent
INTENT_GROUPS: Tuple[Tuple[PrimaryIntent, Tuple[str, ...]], ...] = (
    (PrimaryIntent.BALANCE, (
        "balance", r"how much (?:do|have) i (?:have|got)", r"what(?:'s| is) my balance",
    )),
    (PrimaryIntent.SPENDING, (
        "spend", "spent", "spending", "expense", "expenses", "cost", "costs",
        "paid", "pay", "paying", "bought", "buy", "buying",
    )),
    (PrimaryIntent.INCOME, (
        "income", "earn", "earning", "earnings", "salary", "wage", "wages",
        "received", "receive", "receiving", "deposit", "deposits",
    )),
    (PrimaryIntent.CATEGORY, (
        "category", "categories", "breakdown", "distribution", "allocation",
    )),
    (PrimaryIntent.TREND, (
        "trend", "history", "pattern", "over time", "compare", "comparison",
        "month", "monthly", "week", "weekly", "year", "yearly",
    )),
    (PrimaryIntent.ADVICE, (
        "advice", "suggest", "suggestion", "recommend", "recommendation", "help",
        "improve", "improving", "better", "optimize", "optimizing", "save", "saving", "savings",
    )),
)

CATEGORY_KEYWORDS = MappingProxyType({
    Category.FOOD: (
        "food", "restaurant", "eating", "lunch", "dinner", "breakfast",
        "meal", "cafe", "coffee", "snack", "grocery", "groceries", "supermarket",
        "takeout", "take-out", "take out", "fast food",
    ),
    Category.TRANSPORT: (
        "transport", "transportation", "travel", "uber", "taxi", "fare",
        "bus", "train", "subway", "metro", "car", "gas", "petrol", "fuel",
        "commute", "ride", "trip", "journey", "matatu", "boda", "boda boda",
    ),
    Category.UTILITIES: (
        "utilities", "electricity", "water", "gas", "internet", "wifi",
        "bill", "bills", "utility", "phone", "mobile", "broadband", "service",
        "subscription", "power", "energy", "safaricom", "airtel", "telkom",
    ),
    Category.ENTERTAINMENT: (
        "entertainment", "movies", "cinema", "concert", "subscription",
        "netflix", "spotify", "music", "game", "games", "streaming", "show",
        "theater", "theatre", "event", "ticket", "tickets", "showmax", "dstv",
    ),
    Category.SHOPPING: (
        "shopping", "clothes", "shoes", "mall",
        "purchase", "buy", "bought", "store", "shop", "retail", "clothing",
        "fashion", "accessory", "accessories", "electronics", "gadget", "gadgets",
    ),
    Category.HEALTH: (
        "health", "medical", "hospital", "doctor", "medicine",
        "pharmacy", "clinic", "healthcare", "dental", "dentist", "prescription",
        "drug", "drugs", "treatment", "therapy", "checkup", "check-up",
    ),
    Category.EDUCATION: (
        "education", "school", "college", "university", "tuition", "books",
        "course", "class", "training", "workshop", "seminar", "tutorial",
        "lesson", "learning", "study", "studies", "fee", "fees",
    ),
    Category.HOUSING: (
        "housing", "rent", "mortgage", "apartment", "house",
        "accommodation", "property", "real estate", "landlord", "tenant",
        "lease", "deposit", "home", "residence", "flat",
    ),
    Category.PERSONAL: (
        "personal", "grooming", "haircut", "salon", "spa",
        "beauty", "cosmetics", "makeup", "skincare", "self-care", "self care",
        "hygiene", "toiletries", "barber",
    ),
    Category.SAVINGS: (
        "savings", "investment", "invest", "stock", "stocks",
        "bond", "bonds", "fund", "funds", "retirement", "pension",
        "portfolio", "asset", "assets", "wealth", "financial",
    ),
    Category.INCOME: (
        "income", "salary", "wage", "wages", "earnings",
        "revenue", "profit", "gain", "return", "dividend", "dividends",
        "interest", "payment", "payments", "deposit", "deposits",
    ),
    Category.DEBT: (
        "debt", "loan", "loans", "credit", "borrow", "borrowed",
        "financing", "interest", "repayment", "installment", "emi",
        "liability", "liabilities", "mortgage", "overdraft",
    ),
})

# Implied categories from verbs that name no category themselves
SEMANTIC_CATEGORY_RULES: Tuple[Tuple[Tuple[str, ...], Category], ...] = (
    (("eat", "eating", "ate", "dining"), Category.FOOD),
    (("drove", "driving", "ride"), Category.TRANSPORT),
)

MONTHS = MappingProxyType({
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
})

ORDINAL_QUARTERS = MappingProxyType({"first": 1, "second": 2, "third": 3, "fourth": 4})

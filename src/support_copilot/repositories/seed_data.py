"""Demo customers, orders and help-center articles loaded into a fresh store."""

from datetime import datetime, timezone


def _day(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)


SEED_CUSTOMERS = [
    {"id": "cust-001", "name": "Sarah Mitchell", "email": "sarah.m@email.com",
     "phone": "+1 (555) 123-4567", "location": "San Francisco, CA", "created_at": _day("2022-03-15")},
    {"id": "cust-002", "name": "James Wilson", "email": "james.w@email.com",
     "phone": "+1 (555) 234-5678", "location": "New York, NY", "created_at": _day("2023-01-20")},
    {"id": "cust-sarah-001", "name": "Sarah Johnson", "email": "sarah.j@email.com",
     "phone": "+1 (555) 867-5309", "location": "Austin, TX", "created_at": _day("2024-06-10")},
    {"id": "cust-mike-002", "name": "Mike Chen", "email": "mike.chen@email.com",
     "phone": "+1 (555) 234-8910", "location": "Seattle, WA", "created_at": _day("2024-03-22")},
    {"id": "cust-emily-003", "name": "Emily Davis", "email": "emily.d@email.com",
     "phone": "+1 (555) 456-7890", "location": "Chicago, IL", "created_at": _day("2024-09-05")},
    {"id": "cust-james-004", "name": "James Wilson", "email": "j.wilson@email.com",
     "phone": "+1 (555) 321-0987", "location": "Miami, FL", "created_at": _day("2023-11-18")},
    {"id": "cust-lisa-005", "name": "Lisa Martinez", "email": "lisa.m@email.com",
     "phone": "+1 (555) 654-3210", "location": "Denver, CO", "created_at": _day("2024-01-30")},
]

SEED_ORDERS = [
    {"id": "#12847", "customer_id": "cust-001", "status": "in_transit", "tracking_number": "TRK-9847362",
     "amount": 89.99, "created_at": _day("2024-12-15")},
    {"id": "#12653", "customer_id": "cust-001", "status": "delivered", "tracking_number": None,
     "amount": 145.00, "created_at": _day("2024-11-28")},
    {"id": "#12901", "customer_id": "cust-002", "status": "processing", "tracking_number": None,
     "amount": 234.50, "created_at": _day("2024-12-18")},
    {"id": "#13001", "customer_id": "cust-sarah-001", "status": "in_transit", "tracking_number": "TRK-5551234",
     "amount": 156.99, "created_at": _day("2024-12-20")},
    {"id": "#12890", "customer_id": "cust-sarah-001", "status": "delivered", "tracking_number": None,
     "amount": 79.50, "created_at": _day("2024-11-15")},
    {"id": "#13045", "customer_id": "cust-mike-002", "status": "processing", "tracking_number": None,
     "amount": 312.00, "created_at": _day("2024-12-22")},
    {"id": "#12756", "customer_id": "cust-mike-002", "status": "delivered", "tracking_number": None,
     "amount": 89.99, "created_at": _day("2024-10-30")},
    {"id": "#13078", "customer_id": "cust-emily-003", "status": "pending", "tracking_number": None,
     "amount": 245.00, "created_at": _day("2024-12-23")},
    {"id": "#13102", "customer_id": "cust-james-004", "status": "shipped", "tracking_number": "TRK-8889999",
     "amount": 499.99, "created_at": _day("2024-12-19")},
    {"id": "#12601", "customer_id": "cust-james-004", "status": "delivered", "tracking_number": None,
     "amount": 124.50, "created_at": _day("2024-09-10")},
    {"id": "#12345", "customer_id": "cust-james-004", "status": "delivered", "tracking_number": None,
     "amount": 67.00, "created_at": _day("2024-07-22")},
    {"id": "#13156", "customer_id": "cust-lisa-005", "status": "in_transit", "tracking_number": "TRK-7776543",
     "amount": 189.00, "created_at": _day("2024-12-18")},
]

SEED_ARTICLES = [
    {
        "id": "kb-returns-001",
        "category": "Returns",
        "title": "How to return an item",
        "content": (
            "Items can be returned within 30 days of delivery. Start a return from the Orders page, "
            "print the prepaid label and drop the package at any carrier location. Refunds are issued "
            "to the original payment method within 5-7 business days after the return is received."
        ),
    },
    {
        "id": "kb-refund-002",
        "category": "Returns",
        "title": "Refund policy",
        "content": (
            "Refunds up to $100 are approved automatically once the order is verified. Larger refund "
            "requests are reviewed by a support specialist within one business day."
        ),
    },
    {
        "id": "kb-shipping-003",
        "category": "Shipping",
        "title": "Tracking your shipping and delivery",
        "content": (
            "Every shipped order includes a tracking number. Standard delivery takes 3-5 business days "
            "and expedited delivery takes 1-2 business days. Tracking updates can lag up to 24 hours."
        ),
    },
    {
        "id": "kb-orders-004",
        "category": "Orders",
        "title": "Order processing times",
        "content": (
            "Orders are processed within 1-2 business days. If your order has been processing longer, "
            "contact support and we can expedite shipping at no extra cost."
        ),
    },
    {
        "id": "kb-account-005",
        "category": "Account",
        "title": "Resetting your account password",
        "content": (
            "Use the Forgot password link on the login page. A reset email arrives within a few minutes; "
            "check your spam folder if it does not."
        ),
    },
    {
        "id": "kb-billing-006",
        "category": "Billing",
        "title": "Understanding charges on your billing statement",
        "content": (
            "Payment is captured when the order ships. Pending authorizations from cancelled orders "
            "drop off your statement within 3-5 business days."
        ),
    },
]

"""Finances app package.

This app contains payment receipts, the adapters for the external
payment processors (Stripe Checkout, Paystack, Flutterwave) and the
ledger that applies incremental payments to hostel and school-fee bills.
"""

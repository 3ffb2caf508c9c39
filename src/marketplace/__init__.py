"""Buyer/seller price negotiation core for a verified second-hand marketplace."""

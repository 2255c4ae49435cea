"""Webhook ingress endpoints."""

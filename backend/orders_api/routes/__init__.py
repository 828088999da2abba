# Routes package init
"""
Orders API: Routes Package
===========================

Route Inventory:
    - orders.py:  /order, /orders, /orders/waiter/{waiter}, /order/{id}[/waiter]
    - health.py:  GET /health

Routes handle HTTP concerns only; store access lives in services/.
"""

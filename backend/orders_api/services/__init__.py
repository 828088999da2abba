# Services package init
"""
Orders API: Services Layer
===========================

Service Inventory:
    - OrderService: create, list, get, update-waiter, replace and delete
      against the orders collection, with driver errors translated into the
      application exception hierarchy.
"""

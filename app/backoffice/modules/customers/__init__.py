"""
Customers module.

- Registration (public) and self-service read/update for the logged-in customer
- Admin listing, paging and delete
- Profile picture upload (square crop + resize, stored in object storage)
"""

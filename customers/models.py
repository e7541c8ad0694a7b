from django.db import models


GUEST_NAME = 'Guest'


class Customer(models.Model):
    customer_name = models.CharField(max_length=100, blank=True, null=True)
    table_number = models.CharField(max_length=20)
    order_reference = models.CharField(max_length=50, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.display_name} (Table {self.table_number})"

    @property
    def display_name(self):
        return self.customer_name or GUEST_NAME

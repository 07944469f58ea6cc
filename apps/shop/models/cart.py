from django.conf import settings
from django.db import models


class Cart(models.Model):
    """A user's in-progress points purchase"""

    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_ABANDONED = 'abandoned'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_ABANDONED, 'Abandoned'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='carts')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'shop_carts'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=models.Q(status='active'),
                name='one_active_cart_per_user',
            ),
        ]
        indexes = [
            models.Index(fields=['user', 'status'], name='shop_carts_user_id_4e8a2c_idx'),
        ]

    def __str__(self):
        return f"Cart {self.pk} ({self.status}) - {self.user_id}"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    @property
    def total_points(self):
        return sum(item.line_total for item in self.items.all())


class CartItem(models.Model):
    """Line of a cart, priced in points"""

    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product_id = models.CharField(max_length=50, help_text="Catalog product ID")
    product_name = models.CharField(max_length=200, blank=True, default='')
    quantity = models.PositiveIntegerField(default=1)
    unit_cost_points = models.PositiveIntegerField(help_text="Point price of one unit")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'shop_cart_items'
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product_id'], name='unique_cart_product'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product_id} @ {self.unit_cost_points}"

    @property
    def line_total(self):
        return self.quantity * self.unit_cost_points

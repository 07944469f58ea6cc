from django.urls import path
from . import views

app_name = 'shop'

urlpatterns = [
    path('cart/', views.get_cart, name='cart'),
    path('cart/items/', views.add_cart_item, name='cart_items'),
    path('checkout/', views.checkout, name='checkout'),
]

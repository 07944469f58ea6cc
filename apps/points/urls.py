from django.urls import path
from . import views

app_name = 'points'

urlpatterns = [
    path('balance/', views.get_balance, name='balance'),
    path('can-afford/', views.can_afford, name='can_afford'),
    path('ledger/', views.get_ledger, name='ledger'),
]

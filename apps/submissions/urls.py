from django.urls import path
from . import views

app_name = 'submissions'

urlpatterns = [
    path('<int:submission_id>/approve/', views.approve_submission, name='approve'),
    path('<int:submission_id>/reject/', views.reject_submission, name='reject'),
    path('<int:submission_id>/valuation/', views.change_submission_valuation, name='valuation'),
]

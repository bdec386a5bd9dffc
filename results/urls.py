from django.urls import path
from . import views

app_name = 'results'

urlpatterns = [
    path('students/<int:student_id>/summary/', views.student_summary, name='student_summary'),
    path('classes/<int:class_id>/summary/', views.class_summary, name='class_summary'),
    path('classes/<int:class_id>/report/', views.class_report, name='class_report'),
    path('schools/<int:school_id>/classes/', views.school_classes, name='school_classes'),
]

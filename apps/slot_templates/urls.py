from django.urls import path
from . import views

app_name = 'slot_templates'

urlpatterns = [
    path('',                      views.template_collection, name='collection'),
    path('<uuid:template_id>/',   views.template_detail,     name='detail'),
]

from django.urls import path
from . import views

app_name = 'services'

urlpatterns = [
    path('<uuid:service_id>/day-config/',             views.day_config,  name='day_config'),
    path('<uuid:service_id>/day-config/materialize/', views.materialize, name='day_config_materialize'),
]

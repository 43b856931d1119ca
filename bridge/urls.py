from django.urls import path

from .views import accounts, connections, mentors, messages

urlpatterns = [
    path('auth/signup', accounts.signup, name='signup'),
    path('auth/verify-otp', accounts.verify_otp, name='verify-otp'),
    path('auth/login', accounts.login, name='login'),
    path('users/skills', accounts.update_skills, name='update-skills'),

    path('mentors', mentors.list_mentors, name='mentors'),
    path('mentors/verify', mentors.verify_mentor, name='verify-mentor'),

    path('swipes', connections.record_swipe, name='swipes'),
    path('connections/request', connections.request_connection, name='connection-request'),
    path('connections/pending/<int:mentor_id>', connections.pending_requests, name='connections-pending'),
    path('connections/respond', connections.respond, name='connection-respond'),
    path('connections/active/<int:user_id>', connections.active_connections, name='connections-active'),

    path('messages', messages.send_message, name='messages'),
    path('messages/<str:room_id>', messages.room_history, name='room-history'),
]

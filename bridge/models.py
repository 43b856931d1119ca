from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.contrib.auth.models import AbstractUser, UserManager


class Role(models.TextChoices):
    STUDENT = 'student', 'Student'
    MENTOR = 'mentor', 'Mentor'


class User(AbstractUser):
    """Student or mentor account. Email is the login identifier."""
    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=Role.choices)
    is_verified = models.BooleanField(default=False)

    skills = models.JSONField(default=list, blank=True)
    branch = models.CharField(max_length=150, blank=True, default="")
    bio = models.TextField(blank=True, default="")
    profile_pic = models.URLField(max_length=500, blank=True, null=True)

    # Only the rating collaborator writes these
    rating = models.FloatField(default=0)
    system_rating = models.FloatField(default=0)
    linkedin_url = models.URLField(max_length=500, blank=True, null=True)
    github_url = models.URLField(max_length=500, blank=True, null=True)
    cv_url = models.URLField(max_length=500, blank=True, null=True)

    objects = UserManager()

    @property
    def is_mentor(self):
        return self.role == Role.MENTOR

    def set_skills(self, skills):
        """Store skills as a de-duplicated list, keeping first-seen order."""
        cleaned = []
        for skill in skills or []:
            skill = str(skill).strip()
            if skill and skill not in cleaned:
                cleaned.append(skill)
        self.skills = cleaned

    def __str__(self):
        return f"{self.name or self.username} ({self.role})"


class OneTimePassword(models.Model):
    """Email verification code, one live code per email"""
    email = models.EmailField(primary_key=True)
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()

    def __str__(self):
        return f"OTP for {self.email} (expires {self.expires_at:%Y-%m-%d %H:%M})"


class Swipe(models.Model):
    LEFT = 'left'
    RIGHT = 'right'
    DIRECTION_CHOICES = (
        (LEFT, 'Left'),
        (RIGHT, 'Right'),
    )

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="swipes_made")
    mentor = models.ForeignKey(User, on_delete=models.CASCADE, related_name="swipes_received")
    direction = models.CharField(max_length=5, choices=DIRECTION_CHOICES)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("student", "mentor")

    def __str__(self):
        return f"{self.student_id} → {self.mentor_id} ({self.direction})"


class ConnectionQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=Connection.ACTIVE_STATUSES)

    def between(self, a_id, b_id):
        """Connections for the pair, whichever side is the student"""
        return self.filter(
            Q(student_id=a_id, mentor_id=b_id) | Q(student_id=b_id, mentor_id=a_id)
        )

    def involving(self, user_id):
        return self.filter(Q(student_id=user_id) | Q(mentor_id=user_id))


class Connection(models.Model):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (ACCEPTED, 'Accepted'),
        (REJECTED, 'Rejected'),
    )
    ACTIVE_STATUSES = (PENDING, ACCEPTED)
    DECISIONS = (ACCEPTED, REJECTED)

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="connections_as_student")
    mentor = models.ForeignKey(User, on_delete=models.CASCADE, related_name="connections_as_mentor")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    created_at = models.DateTimeField(default=timezone.now)
    responded_at = models.DateTimeField(blank=True, null=True)

    objects = ConnectionQuerySet.as_manager()

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=["student", "mentor"],
                condition=Q(status__in=["pending", "accepted"]),
                name="unique_active_connection",
            ),
        ]

    def __str__(self):
        return f"{self.student_id} → {self.mentor_id} [{self.status}]"


class MessageType(models.TextChoices):
    TEXT = 'text', 'Text'
    VOICE = 'voice', 'Voice note'
    VIDEO = 'video', 'Video'
    VIDEO_CALL = 'video_call', 'Video call'
    ROADMAP = 'roadmap', 'Roadmap'


class Message(models.Model):
    """Chat message, append-only log partitioned by room id"""
    room_id = models.CharField(max_length=64)
    sender = models.ForeignKey(User, on_delete=models.CASCADE, related_name="messages_sent")
    text = models.TextField(blank=True, null=True)
    voice_url = models.CharField(max_length=2000, blank=True, null=True)
    type = models.CharField(max_length=20, choices=MessageType.choices, default=MessageType.TEXT)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=["room_id", "timestamp", "id"], name="message_room_order"),
        ]

    def __str__(self):
        return f"From {self.sender_id} in {self.room_id} ({self.type})"

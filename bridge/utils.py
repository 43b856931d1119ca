from .rooms import room_id


def iso(dt):
    return dt.isoformat() if dt else None


def serialize_user(user):
    """Public profile, as returned by login and the mentor deck"""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "isVerified": user.is_verified,
        "profilePic": user.profile_pic,
        "rating": user.rating,
        "systemRating": user.system_rating,
        "skills": list(user.skills or []),
        "branch": user.branch,
        "bio": user.bio,
        "linkedinUrl": user.linkedin_url,
        "githubUrl": user.github_url,
        "cvUrl": user.cv_url,
    }


def serialize_connection(conn):
    data = {
        "id": conn.id,
        "studentId": conn.student_id,
        "mentorId": conn.mentor_id,
        "status": conn.status,
        "createdAt": iso(conn.created_at),
        "respondedAt": iso(conn.responded_at),
    }
    if conn.status == conn.ACCEPTED:
        data["roomId"] = room_id(conn.student_id, conn.mentor_id)
    return data


def serialize_pending(conn):
    """Pending request with the requester's summary, for the mentor dashboard"""
    student = conn.student
    return {
        "id": conn.id,
        "studentId": student.id,
        "studentName": student.name,
        "studentBranch": student.branch,
        "createdAt": iso(conn.created_at),
    }


def serialize_active(conn, viewer_id):
    """Accepted connection seen from ``viewer_id``'s side"""
    other = conn.mentor if conn.student_id == viewer_id else conn.student
    return {
        "connectionId": conn.id,
        "otherId": other.id,
        "otherName": other.name,
        "otherRole": other.role,
        "roomId": room_id(conn.student_id, conn.mentor_id),
    }


def serialize_message(message):
    return {
        "id": message.id,
        "roomId": message.room_id,
        "senderId": message.sender_id,
        "text": message.text,
        "voiceUrl": message.voice_url,
        "type": message.type,
        "timestamp": iso(message.timestamp),
    }

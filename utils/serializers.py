from utils.timeutil import iso


def user_to_dict(user):
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "created_at": iso(user.created_at),
    }


def slot_to_dict(slot):
    return {
        "id": slot.id,
        "interviewer_id": slot.interviewer_id,
        "interviewer": slot.interviewer.summary() if slot.interviewer else None,
        "start_time": iso(slot.start_time),
        "end_time": iso(slot.end_time),
        "is_available": slot.is_available,
        "interview_id": slot.interview_id,
        "state": slot.state,
        "created_at": iso(slot.created_at),
        "updated_at": iso(slot.updated_at),
    }


def interview_to_dict(interview):
    return {
        "id": interview.id,
        "title": interview.title,
        "description": interview.description,
        "start_time": iso(interview.start_time),
        "end_time": iso(interview.end_time),
        "status": interview.status,
        "video_link": interview.video_link,
        "notes": interview.notes,
        "candidate_id": interview.candidate_id,
        "interviewer_id": interview.interviewer_id,
        "candidate": interview.candidate.summary() if interview.candidate else None,
        "interviewer": interview.interviewer.summary() if interview.interviewer else None,
        "slot_id": interview.slot_id,
        "created_at": iso(interview.created_at),
        "updated_at": iso(interview.updated_at),
    }

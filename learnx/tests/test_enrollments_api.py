import pytest


@pytest.fixture
def classroom(client, make_user, make_course, login):
    """A one-seat course taught by an instructor with one enrolled student"""
    instructor = make_user(role='instructor')
    student = make_user()
    course_id = make_course(instructor_id=instructor.user_id, maxStudents=1)
    login(student)
    enrollment = client.post(f'/api/courses/{course_id}/enroll', json={'preferredMode': 'face-to-face'})
    assert enrollment.status_code == 201
    return {
        'instructor': instructor,
        'student': student,
        'course_id': course_id,
        'enrollment_id': enrollment.json['enrollment']['enrollmentId'],
    }


def test_my_enrollments(client, classroom):
    response = client.get('/api/enrollments/me')

    assert response.status_code == 200
    assert response.json['total'] == 1
    assert response.json['enrollments'][0]['courseId'] == classroom['course_id']


def test_enrollment_detail_access(client, classroom, make_user, login):
    enrollment_id = classroom['enrollment_id']
    assert client.get(f'/api/enrollments/{enrollment_id}').status_code == 200

    login(make_user())
    assert client.get(f'/api/enrollments/{enrollment_id}').status_code == 403

    login(classroom['instructor'])
    response = client.get(f'/api/enrollments/{enrollment_id}')
    assert response.status_code == 200
    assert response.json['enrollment']['attendance'] == []

    assert client.get('/api/enrollments/9999').status_code == 404


def test_cancel_frees_the_seat(client, classroom, make_user, login):
    course_id = classroom['course_id']

    response = client.post(f"/api/enrollments/{classroom['enrollment_id']}/cancel")
    assert response.status_code == 200
    assert response.json['enrollment']['status'] == 'cancelled'

    again = client.post(f"/api/enrollments/{classroom['enrollment_id']}/cancel")
    assert again.status_code == 409
    assert again.json['code'] == 'INVALID_ENROLLMENT_STATE'

    login(make_user())
    taken = client.post(f'/api/courses/{course_id}/enroll', json={'preferredMode': 'face-to-face'})
    assert taken.status_code == 201


def test_other_student_cannot_cancel(client, classroom, make_user, login):
    login(make_user())

    response = client.post(f"/api/enrollments/{classroom['enrollment_id']}/cancel")

    assert response.status_code == 403


def test_switch_online(client, classroom):
    response = client.post(f"/api/enrollments/{classroom['enrollment_id']}/switch-online")

    assert response.status_code == 200
    assert response.json['enrollment']['preferredMode'] == 'online'
    availability = client.get(f"/api/courses/{classroom['course_id']}/availability").json
    assert availability['availableSpots'] == 1


def test_instructor_marks_attendance(client, classroom, login):
    enrollment_id = classroom['enrollment_id']
    forbidden = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={'present': True})
    assert forbidden.status_code == 403

    login(classroom['instructor'])
    first = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={
        'sessionDate': '2024-05-04T10:00:00', 'present': True
    })
    second = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={
        'sessionDate': '2024-05-11T10:00:00', 'present': False, 'notes': 'travel'
    })
    bad_date = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={'sessionDate': 'soon'})

    assert first.status_code == 201
    assert first.json['record']['sessionDate'] == '2024-05-04T10:00:00'
    assert second.json['attendancePercentage'] == 50
    assert bad_date.status_code == 400


def test_instructor_updates_progress(client, classroom, login):
    enrollment_id = classroom['enrollment_id']
    login(classroom['instructor'])

    halfway = client.put(f'/api/enrollments/{enrollment_id}/progress', json={'progress': 50})
    too_far = client.put(f'/api/enrollments/{enrollment_id}/progress', json={'progress': 150})
    finished = client.put(f'/api/enrollments/{enrollment_id}/progress', json={'progress': 100})

    assert halfway.json['enrollment']['progress'] == 50
    assert too_far.status_code == 400
    assert finished.json['enrollment']['status'] == 'completed'

    login(classroom['student'])
    me = client.get('/api/auth/me').json['user']
    assert me['enrolledCourses'][0]['completed'] is True


def test_waitlisted_student_takes_online_place(client, classroom, make_user, login):
    course_id = classroom['course_id']
    login(make_user())
    queued = client.post(f'/api/courses/{course_id}/waitlist').json['enrollment']

    response = client.post(f"/api/enrollments/{queued['enrollmentId']}/switch-online")

    assert response.status_code == 200
    assert response.json['enrollment']['status'] == 'active'
    course = client.get(f'/api/courses/{course_id}').json['course']
    assert course['currentEnrollment'] == 1
    assert course['studentsEnrolled'] == 2


def test_attendance_rejects_non_boolean_present(client, classroom, login):
    enrollment_id = classroom['enrollment_id']
    login(classroom['instructor'])

    as_string = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={
        'sessionDate': '2024-05-04T10:00:00', 'present': 'false'
    })
    bad_notes = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={
        'sessionDate': '2024-05-04T10:00:00', 'present': False, 'notes': 3
    })
    absent = client.post(f'/api/enrollments/{enrollment_id}/attendance', json={
        'sessionDate': '2024-05-04T10:00:00', 'present': False
    })

    assert as_string.status_code == 400
    assert bad_notes.status_code == 400
    assert absent.status_code == 201
    assert absent.json['record']['present'] is False
    assert absent.json['attendancePercentage'] == 0

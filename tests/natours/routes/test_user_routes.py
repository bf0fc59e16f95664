from datetime import timedelta

import pytest

from natours.core.clock import utcnow
from natours.core.exceptions import DeliveryError

SIGNUP_PAYLOAD = {
    'name': 'Jonas Schmedtmann',
    'email': 'Jonas@Example.com',
    'password': 'pass1234',
    'passwordConfirm': 'pass1234',
}


def _reset_token_from(mailer) -> str:
    body = mailer.sent[-1]['body']
    return body.split('/api/v1/users/resetPassword/', 1)[1].split('.', 1)[0]


def test_signup_returns_token_sets_cookie_and_hides_password(client) -> None:
    response = client.post('/api/v1/users/signup', json={**SIGNUP_PAYLOAD, 'role': 'admin'})

    body = response.json()
    assert response.status_code == 201
    assert body['status'] == 'success'
    assert body['token']
    assert response.cookies.get('jwt') == body['token']
    user = body['data']['user']
    assert user['email'] == 'jonas@example.com'
    assert user['role'] == 'user'
    assert 'password' not in user
    assert 'active' not in user


def test_signup_rejects_mismatched_passwords(client) -> None:
    response = client.post('/api/v1/users/signup', json={**SIGNUP_PAYLOAD, 'passwordConfirm': 'pass12345'})

    assert response.status_code == 400
    assert 'Passwords are not the same!' in response.json()['message']


def test_signup_rejects_duplicate_email(client, create_user) -> None:
    create_user(email='jonas@example.com')

    response = client.post('/api/v1/users/signup', json=SIGNUP_PAYLOAD)

    assert response.status_code == 400
    assert response.json()['message'] == 'Duplicate field value. Please use another value!'


def test_login_and_access_protected_route_with_cookie(client, create_user) -> None:
    create_user(email='jonas@example.com')

    login = client.post('/api/v1/users/login', json={'email': 'jonas@example.com', 'password': 'pass1234'})
    assert login.status_code == 200

    me = client.get('/api/v1/users/me')
    assert me.status_code == 200
    assert me.json()['data']['data']['email'] == 'jonas@example.com'


@pytest.mark.parametrize(
    ('payload', 'status_code', 'message'),
    [
        ({'email': 'jonas@example.com'}, 400, 'Please provide email and password!'),
        ({'email': 'jonas@example.com', 'password': 'wrong-pass'}, 401, 'Incorrect email or password'),
        ({'email': 'nobody@example.com', 'password': 'pass1234'}, 401, 'Incorrect email or password'),
    ],
)
def test_login_failures(client, create_user, payload, status_code, message) -> None:
    create_user(email='jonas@example.com')

    response = client.post('/api/v1/users/login', json=payload)

    assert response.status_code == status_code
    assert response.json()['message'] == message


def test_me_requires_login(client) -> None:
    response = client.get('/api/v1/users/me')

    assert response.status_code == 401
    assert response.json() == {
        'status': 'fail',
        'message': 'You are not logged in! Please log in to get access.',
    }


def test_me_rejects_invalid_token(client) -> None:
    response = client.get('/api/v1/users/me', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json()['message'] == 'Invalid token. Please log in again!'


def test_update_me_changes_allowed_fields_only(client, create_user, auth_header) -> None:
    header = auth_header(create_user(email='jonas@example.com'))

    response = client.patch(
        '/api/v1/users/updateMe',
        json={'name': 'Jonas S', 'role': 'admin'},
        headers=header,
    )

    user = response.json()['data']['user']
    assert response.status_code == 200
    assert user['name'] == 'Jonas S'
    assert user['role'] == 'user'


def test_update_me_rejects_password_fields(client, create_user, auth_header) -> None:
    header = auth_header(create_user())

    response = client.patch('/api/v1/users/updateMe', json={'password': 'newpass1234'}, headers=header)

    assert response.status_code == 400
    assert 'This route is not for password updates' in response.json()['message']


def test_update_my_password_invalidates_older_tokens(client, create_user, auth_header) -> None:
    user_id = create_user()
    old_header = auth_header(user_id, issued_at=utcnow() - timedelta(hours=1))

    response = client.patch(
        '/api/v1/users/updateMyPassword',
        json={'passwordCurrent': 'pass1234', 'password': 'newpass1234', 'passwordConfirm': 'newpass1234'},
        headers=old_header,
    )
    assert response.status_code == 200
    new_token = response.json()['token']

    client.cookies.clear()
    rejected = client.get('/api/v1/users/me', headers=old_header)
    assert rejected.status_code == 401
    assert rejected.json()['message'] == 'User recently changed password! Please log in again.'
    accepted = client.get('/api/v1/users/me', headers={'Authorization': f'Bearer {new_token}'})
    assert accepted.status_code == 200


def test_update_my_password_with_wrong_current_password(client, create_user, auth_header) -> None:
    header = auth_header(create_user())

    response = client.patch(
        '/api/v1/users/updateMyPassword',
        json={'passwordCurrent': 'wrong-pass', 'password': 'newpass1234', 'passwordConfirm': 'newpass1234'},
        headers=header,
    )

    assert response.status_code == 401
    assert response.json()['message'] == 'Your current password is wrong.'


def test_delete_me_deactivates_account(client, create_user, auth_header) -> None:
    header = auth_header(create_user(email='jonas@example.com'))

    response = client.delete('/api/v1/users/deleteMe', headers=header)

    assert response.status_code == 204
    assert client.get('/api/v1/users/me', headers=header).status_code == 401
    login = client.post('/api/v1/users/login', json={'email': 'jonas@example.com', 'password': 'pass1234'})
    assert login.status_code == 401


def test_forgot_and_reset_password_flow(client, create_user, mailer) -> None:
    create_user(email='jonas@example.com')

    forgot = client.post('/api/v1/users/forgotPassword', json={'email': 'jonas@example.com'})
    assert forgot.status_code == 200
    assert forgot.json() == {'status': 'success', 'message': 'Token sent to email!'}
    assert mailer.sent[0]['to'] == 'jonas@example.com'

    token = _reset_token_from(mailer)
    reset = client.patch(
        f'/api/v1/users/resetPassword/{token}',
        json={'password': 'brandnew123', 'passwordConfirm': 'brandnew123'},
    )
    assert reset.status_code == 200
    assert reset.json()['token']

    reused = client.patch(
        f'/api/v1/users/resetPassword/{token}',
        json={'password': 'another1234', 'passwordConfirm': 'another1234'},
    )
    assert reused.status_code == 400
    assert reused.json()['message'] == 'Token is invalid or has expired'

    login = client.post('/api/v1/users/login', json={'email': 'jonas@example.com', 'password': 'brandnew123'})
    assert login.status_code == 200


def test_forgot_password_for_unknown_email(client, mailer) -> None:
    response = client.post('/api/v1/users/forgotPassword', json={'email': 'nobody@example.com'})

    assert response.status_code == 404
    assert response.json()['message'] == 'There is no user with that email address.'
    assert mailer.sent == []


def test_forgot_password_reports_delivery_failure(client, create_user, mailer) -> None:
    create_user(email='jonas@example.com')
    mailer.error = DeliveryError('Timed out after 10s sending email')

    response = client.post('/api/v1/users/forgotPassword', json={'email': 'jonas@example.com'})

    assert response.status_code == 500
    assert response.json() == {
        'status': 'error',
        'message': 'There was an error sending the email. Try again later!',
    }


@pytest.mark.parametrize('role', ['user', 'guide', 'lead-guide'])
def test_user_admin_routes_reject_non_admins(client, create_user, auth_header, role) -> None:
    header = auth_header(create_user(role=role))

    assert client.get('/api/v1/users', headers=header).status_code == 403


def test_admin_manages_users(client, create_user, auth_header) -> None:
    header = auth_header(create_user(email='admin@example.com', role='admin'))
    user_id = create_user(email='guide@example.com', role='user')

    listing = client.get('/api/v1/users?sort=email', headers=header)
    assert listing.status_code == 200
    assert [user['email'] for user in listing.json()['data']['data']] == ['admin@example.com', 'guide@example.com']

    promoted = client.patch(f'/api/v1/users/{user_id}', json={'role': 'guide'}, headers=header)
    assert promoted.status_code == 200
    assert promoted.json()['data']['data']['role'] == 'guide'

    invalid = client.patch(f'/api/v1/users/{user_id}', json={'role': 'superuser'}, headers=header)
    assert invalid.status_code == 400

    deleted = client.delete(f'/api/v1/users/{user_id}', headers=header)
    assert deleted.status_code == 204
    assert client.get(f'/api/v1/users/{user_id}', headers=header).status_code == 404


def test_admin_cannot_create_users_directly(client, create_user, auth_header) -> None:
    header = auth_header(create_user(role='admin'))

    response = client.post('/api/v1/users', json={}, headers=header)

    assert response.status_code == 500
    assert response.json()['message'] == 'This route is not defined! Please use /signup instead'


def test_user_listing_cannot_filter_on_hidden_fields(client, create_user, auth_header) -> None:
    header = auth_header(create_user(role='admin'))

    response = client.get('/api/v1/users?password=pass1234', headers=header)

    assert response.status_code == 200
    assert response.json()['results'] == 0


def test_deleting_user_removes_reviews_and_recomputes_ratings(client, create_user, create_tour, auth_header) -> None:
    admin = auth_header(create_user(email='admin@example.com', role='admin'))
    tour_id = create_tour()
    staying = auth_header(create_user(email='staying@example.com'))
    leaving_id = create_user(email='leaving@example.com')
    client.post(f'/api/v1/tours/{tour_id}/reviews', json={'review': 'Fine', 'rating': 4}, headers=staying)
    client.post(f'/api/v1/tours/{tour_id}/reviews', json={'review': 'Awful', 'rating': 1}, headers=auth_header(leaving_id))

    response = client.delete(f'/api/v1/users/{leaving_id}', headers=admin)

    assert response.status_code == 204
    reviews = client.get('/api/v1/reviews', headers=staying).json()['data']['data']
    assert [review['review'] for review in reviews] == ['Fine']
    tour = client.get(f'/api/v1/tours/{tour_id}').json()['data']['data']
    assert tour['ratingsQuantity'] == 1
    assert tour['ratingsAverage'] == 4

import pytest

pytestmark = pytest.mark.django_db


def test_register_then_login(api_client):
    registered = api_client.post('/api/v1/auth/register/', {
        'firstName': 'Dana',
        'email': 'Dana@Example.com',
        'password': 'correct-horse-battery',
    }, format='json')

    assert registered.status_code == 201
    assert registered.json()['user']['email'] == 'dana@example.com'
    assert registered.json()['accessToken']

    login = api_client.post('/api/v1/auth/login/', {
        'email': 'dana@example.com',
        'password': 'correct-horse-battery',
    }, format='json')
    assert login.status_code == 200

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.json()['accessToken']}")
    me = api_client.get('/api/v1/users/me/').json()['data']
    assert me['firstName'] == 'Dana'


def test_login_with_wrong_password(api_client, alice):
    response = api_client.post('/api/v1/auth/login/', {
        'email': alice.email,
        'password': 'nope',
    }, format='json')

    assert response.status_code == 401
    assert response.json()['error'] == {
        'code': 'authentication_failed',
        'message': 'Invalid email or password.',
    }


def test_login_requires_both_fields(api_client):
    response = api_client.post('/api/v1/auth/login/', {'email': 'x@example.com'}, format='json')
    assert response.status_code == 400
    assert response.json()['error']['message'] == 'Both email and password are required.'


def test_profile_update(client_for, alice):
    response = client_for(alice).patch('/api/v1/users/me/', {'displayName': ' Ali '}, format='json')
    assert response.json()['data']['displayName'] == 'Ali'


def test_logout_blacklists_refresh_token(api_client):
    tokens = api_client.post('/api/v1/auth/register/', {
        'firstName': 'Eli',
        'email': 'eli@example.com',
        'password': 'correct-horse-battery',
    }, format='json').json()
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['accessToken']}")

    response = api_client.post('/api/v1/auth/logout/', {'refreshToken': tokens['refreshToken']}, format='json')
    assert response.status_code == 200

    refreshed = api_client.post('/api/v1/auth/token/refresh/', {'refresh': tokens['refreshToken']}, format='json')
    assert refreshed.status_code == 401

"""
Profile tests for TruckConnect
Tests self-service profile edits, applicant snapshot staleness and the
received-ratings views
"""
import json

from conftest import LOAD_DATA
from truckconnect import db
from truckconnect.models import Driver, User
from truckconnect.services import accounts, lifecycle, ratings


def _completed_load_for(customer, driver_user):
    load = lifecycle.create_load(customer, dict(LOAD_DATA))
    lifecycle.apply_to_load(load.id, driver_user)
    lifecycle.assign_driver(load.id, customer, driver_user.driver_profile.id)
    return lifecycle.complete_load(load.id, customer)


class TestProfileUpdates:
    """Test PUT /api/profile/user and /api/profile/driver"""

    def test_customer_updates_name_and_phone(self, client, customer_headers, test_customer):
        response = client.put('/api/profile/user', headers=customer_headers,
                              json={'name': 'Ravi K', 'phone': '9988776655'})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['user']['name'] == 'Ravi K'
        assert data['user']['phone'] == '9988776655'

    def test_empty_fields_left_alone(self, client, customer_headers, test_customer):
        response = client.put('/api/profile/user', headers=customer_headers,
                              json={'name': '', 'phone': None})

        assert response.status_code == 200
        user = db.session.get(User, test_customer.id)
        assert user.name == 'Ravi Kumar'
        assert user.phone == '9876543210'

    def test_invalid_phone_changes_nothing(self, client, customer_headers, test_customer):
        response = client.put('/api/profile/user', headers=customer_headers,
                              json={'name': 'Someone Else', 'phone': '12'})

        assert response.status_code == 400
        assert db.session.get(User, test_customer.id).name == 'Ravi Kumar'

    def test_driver_updates_lorry(self, client, driver_headers, test_driver):
        response = client.put('/api/profile/driver', headers=driver_headers, json={
            'name': 'Suresh R',
            'address': 'Miyapur, Hyderabad',
            'lorryType': 'Container 20ft',
            'maxCapacity': 18,
        })

        assert response.status_code == 200
        driver = json.loads(response.data)['driver']
        assert driver['name'] == 'Suresh R'
        assert driver['lorryType'] == 'Container 20ft'
        assert driver['maxCapacity'] == 18
        assert driver['address'] == 'Miyapur, Hyderabad'

    def test_invalid_capacity_changes_nothing(self, client, driver_headers, test_driver):
        response = client.put('/api/profile/driver', headers=driver_headers,
                              json={'lorryType': 'Trailer', 'maxCapacity': -5})

        assert response.status_code == 400
        driver = db.session.get(Driver, test_driver.driver_profile.id)
        assert driver.lorry_type == 'Open body 14ft'
        assert driver.max_capacity == 12

    def test_customer_cannot_edit_driver_profile(self, client, customer_headers):
        response = client.put('/api/profile/driver', headers=customer_headers, json={'lorryType': 'Tipper'})

        assert response.status_code == 403

    def test_requires_auth(self, client):
        assert client.put('/api/profile/user', json={'name': 'Anon'}).status_code == 401


class TestSnapshotStaleness:
    """Applications keep the profile as it was when the driver applied"""

    def test_snapshot_keeps_old_profile_but_live_rating(self, make_customer, test_customer, test_driver,
                                                        pending_load):
        lifecycle.apply_to_load(pending_load.id, test_driver)

        accounts.update_driver_profile(test_driver, {'name': 'Suresh Renamed', 'lorryType': 'Container 20ft'})
        other_customer = make_customer()
        finished = _completed_load_for(other_customer, test_driver)
        ratings.rate_driver(finished.id, other_customer, 4)

        applicant = lifecycle.get_applicants(pending_load.id, test_customer)[0]
        assert applicant['name'] == 'Suresh Reddy'
        assert applicant['lorryType'] == 'Open body 14ft'
        assert applicant['averageRating'] == 4.0
        assert applicant['totalRatings'] == 1

    def test_later_application_sees_new_profile(self, make_customer, test_driver):
        accounts.update_driver_profile(test_driver, {'lorryType': 'Container 20ft'})
        customer = make_customer()
        load = lifecycle.create_load(customer, dict(LOAD_DATA))

        lifecycle.apply_to_load(load.id, test_driver)

        assert lifecycle.get_applicants(load.id, customer)[0]['lorryType'] == 'Container 20ft'


class TestReceivedRatings:
    """Test GET /api/profile/my-ratings and /api/profile/rating-breakdown"""

    def test_driver_sees_ratings_received(self, client, driver_headers, make_customer, test_driver):
        first, second = make_customer(name='Anil'), make_customer(name='Bhavna')
        ratings.rate_driver(_completed_load_for(first, test_driver).id, first, 5, 'Very careful')
        ratings.rate_driver(_completed_load_for(second, test_driver).id, second, 3)

        response = client.get('/api/profile/my-ratings', headers=driver_headers)

        assert response.status_code == 200
        received = json.loads(response.data)['ratings']
        assert [r['customerRating']['rating'] for r in received] == [3, 5]
        assert received[1]['customerName'] == 'Anil'

    def test_customer_sees_only_driver_scores(self, client, customer_headers, test_customer, test_driver,
                                              completed_load):
        ratings.rate_driver(completed_load.id, test_customer, 5)

        received = json.loads(client.get('/api/profile/my-ratings', headers=customer_headers).data)['ratings']
        assert received == []

        ratings.rate_customer(completed_load.id, test_driver, 2)
        received = json.loads(client.get('/api/profile/my-ratings', headers=customer_headers).data)['ratings']
        assert [r['driverRating']['rating'] for r in received] == [2]

    def test_breakdown(self, client, driver_headers, make_customer, test_driver):
        for stars in (5, 5, 4, 1):
            customer = make_customer()
            ratings.rate_driver(_completed_load_for(customer, test_driver).id, customer, stars)

        response = client.get('/api/profile/rating-breakdown', headers=driver_headers)

        assert response.status_code == 200
        assert json.loads(response.data)['breakdown'] == {'5': 2, '4': 1, '3': 0, '2': 0, '1': 1}

    def test_breakdown_without_ratings(self, test_customer):
        assert ratings.rating_breakdown(test_customer) == {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}

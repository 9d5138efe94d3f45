"""
Notification inbox tests for TruckConnect
"""
import json

from conftest import headers_for
from truckconnect.models import Notification
from truckconnect.services import notifications


def _seed(user, count=3):
    return [
        notifications.notify(user.id, 'load_application', f'Title {i}', f'Message {i}')
        for i in range(count)
    ]


class TestInbox:
    """Test listing and counting"""

    def test_list_newest_first(self, client, test_customer, customer_headers):
        _seed(test_customer)

        response = client.get('/api/notifications', headers=customer_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert [n['title'] for n in data['notifications']] == ['Title 2', 'Title 1', 'Title 0']
        assert data['unreadCount'] == 3
        assert data['notifications'][0]['read'] is False

    def test_list_is_capped(self, app, test_customer):
        app.config['NOTIFICATION_LIST_LIMIT'] = 2
        _seed(test_customer, count=4)

        items, unread = notifications.list_notifications(test_customer.id)

        assert len(items) == 2
        assert unread == 4

    def test_only_own_notifications(self, client, make_customer, test_customer, customer_headers):
        _seed(make_customer(), count=2)
        _seed(test_customer, count=1)

        data = json.loads(client.get('/api/notifications', headers=customer_headers).data)

        assert len(data['notifications']) == 1

    def test_unread_count(self, client, test_customer, customer_headers):
        _seed(test_customer, count=2)

        response = client.get('/api/notifications/unread-count', headers=customer_headers)

        assert json.loads(response.data)['count'] == 2

    def test_requires_auth(self, client):
        assert client.get('/api/notifications').status_code == 401


class TestInboxActions:
    """Test read / delete actions"""

    def test_mark_read(self, client, test_customer, customer_headers):
        first = _seed(test_customer, count=2)[0]

        response = client.put(f'/api/notifications/{first.id}/read', headers=customer_headers)

        assert response.status_code == 200
        assert json.loads(response.data)['notification']['read'] is True
        assert notifications.unread_count(test_customer.id) == 1

    def test_mark_read_foreign_notification(self, client, make_customer, customer_headers):
        foreign = _seed(make_customer(), count=1)[0]

        response = client.put(f'/api/notifications/{foreign.id}/read', headers=customer_headers)

        assert response.status_code == 404
        assert Notification.query.filter_by(id=foreign.id).one().is_read is False

    def test_mark_all_read(self, client, test_customer, customer_headers):
        _seed(test_customer)

        response = client.put('/api/notifications/read-all', headers=customer_headers)

        assert response.status_code == 200
        assert json.loads(response.data)['updated'] == 3
        assert notifications.unread_count(test_customer.id) == 0

    def test_delete_one(self, client, test_customer, customer_headers):
        first = _seed(test_customer, count=2)[0]

        response = client.delete(f'/api/notifications/{first.id}', headers=customer_headers)

        assert response.status_code == 200
        assert Notification.query.filter_by(user_id=test_customer.id).count() == 1

    def test_delete_all(self, client, make_customer, test_customer, customer_headers):
        other = make_customer()
        _seed(other, count=1)
        _seed(test_customer)

        response = client.delete('/api/notifications', headers=headers_for(test_customer))

        assert response.status_code == 200
        assert json.loads(response.data)['deleted'] == 3
        assert Notification.query.filter_by(user_id=test_customer.id).count() == 0
        assert Notification.query.filter_by(user_id=other.id).count() == 1

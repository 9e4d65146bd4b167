def test_socket_connect_and_join(sio_client, game):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    # Flush any initial events
    sio_client.get_received('/ws')

    sio_client.emit('join_game', {'game_id': game['id']}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'joined' for pkt in received)


def test_join_unknown_game_reports_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {'game_id': 'missing'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_ping(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)


def test_toggle_broadcasts_state_and_milestone(client, sio_client, game):
    gid = game['id']
    sio_client.emit('join_game', {'game_id': gid}, namespace='/ws')
    sio_client.get_received('/ws')

    for i in (0, 1, 2, 3, 4):
        client.post(f'/api/bingo/games/{gid}/toggle', json={'index': i})

    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert names.count('state_update') == 5
    milestones = [pkt['args'][0] for pkt in received if pkt['name'] == 'milestone']
    assert milestones == [{'game_id': gid, 'milestone': 'first_bingo', 'bingo_count': 1, 'next_target': 3}]


def test_ignored_toggle_does_not_broadcast(client, sio_client, game):
    gid = game['id']
    sio_client.emit('join_game', {'game_id': gid}, namespace='/ws')
    sio_client.get_received('/ws')
    client.post(f'/api/bingo/games/{gid}/toggle', json={'index': 12})
    assert sio_client.get_received('/ws') == []

from memory_hole.db.permissions import user_can_access_group, user_can_access_issue


def test_group_membership(db, store):
    ops = store.add_group("ops")
    dev = store.add_group("dev")
    alice = store.add_user("alice", groups=[ops])
    assert user_can_access_group(db, alice, ops) is True
    assert user_can_access_group(db, alice, dev) is False


def test_missing_ids_are_denied_without_queries(db, store):
    assert user_can_access_group(db, None, 1) is False
    assert user_can_access_group(db, 1, None) is False
    assert user_can_access_issue(db, 1, None) is False
    assert store.called() == []


def test_issue_access_follows_owning_group(db, store):
    ops = store.add_group("ops")
    alice = store.add_user("alice", groups=[ops])
    bob = store.add_user("bob")
    store.issue_rows[10] = {"group_id": ops}
    store.checkpoint()
    assert user_can_access_issue(db, alice, 10) is True
    assert user_can_access_issue(db, bob, 10) is False
    assert user_can_access_issue(db, alice, 11) is False


def test_checks_join_the_callers_transaction(db, store):
    from memory_hole.db.database import transaction

    ops = store.add_group("ops")
    alice = store.add_user("alice", groups=[ops])
    with transaction(db):
        assert user_can_access_group(db, alice, ops)
        assert db.commits == 0
    assert db.commits == 1

from multirole.deck import Deck


def test_empty_deck():
    deck = Deck()
    assert deck.code_map() == {}
    assert deck.error == 0
    assert deck.main == ()


def test_code_map_counts_all_sections():
    deck = Deck([10, 20, 10], [30], [10, 30])
    assert deck.code_map() == {10: 3, 20: 1, 30: 2}


def test_code_map_is_ordered_by_code():
    deck = Deck([300, 100, 200], [50], [])
    assert list(deck.code_map()) == [50, 100, 200, 300]


def test_code_map_total_matches_card_count():
    deck = Deck([1, 2, 3, 1], [4, 4], [5])
    assert sum(deck.code_map().values()) == len(deck.main) + len(deck.extra) + len(deck.side)


def test_sections_are_copied():
    main = [1, 2]
    deck = Deck(main, [], [], 7)
    main.append(3)
    assert deck.main == (1, 2)
    assert deck.error == 7
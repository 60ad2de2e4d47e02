from decimal import Decimal

import pytest

from kitchenops.app.db.models.core_types import DemandSource, EventType
from kitchenops.app.db.models.models_v1 import Organization
from kitchenops.services.demand import DemandPlanner
from kitchenops.services.errors import EventNotFoundError, IngredientNotFoundError, PersistenceError
from kitchenops.services.repository import SqlAlchemyRepository


def test_same_ingredient_is_summed_then_buffered_once(catalog, repo):
    """
    GIVEN
    - BANQUET de 4 pax, deux menus
    - chaque recette (servings=2) utilise 2 kg du même ingrédient, sans famille

    THEN
    - quantity_needed == 8 (2 x 4/2, deux fois)
    - quantity_with_buffer == 8.8 (buffer par défaut 1.10, appliqué une fois)
    """
    rice = catalog.ingredient("Rice")
    paella = catalog.recipe("Paella", 2, [(rice, "2")])
    risotto = catalog.recipe("Risotto", 2, [(rice, "2")])
    ev = catalog.event(EventType.banquet, pax=4, menus=[(paella, None), (risotto, None)])

    demands = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert len(demands) == 1
    line = demands[0]
    assert line.ingredient_id == rice.id
    assert line.quantity_needed == Decimal("8")
    assert line.safety_buffer == Decimal("1.10")
    assert line.quantity_with_buffer == Decimal("8.8")
    assert line.unit_abbr == "kg"
    assert line.source == DemandSource.recipe


def test_a_la_carte_uses_forecast_not_pax(catalog, repo):
    meat = catalog.family("Meat", "1.20")
    beef = catalog.ingredient("Beef", family=meat)
    steak = catalog.recipe("Steak", 1, [(beef, "2")])
    ev = catalog.event(EventType.a_la_carte, pax=10, menus=[(steak, "5")])

    demands = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert [d.quantity_needed for d in demands] == [Decimal("10")]
    assert demands[0].quantity_with_buffer == Decimal("12.0")


def test_a_la_carte_menu_without_forecast_contributes_nothing(catalog, repo):
    beef = catalog.ingredient("Beef")
    steak = catalog.recipe("Steak", 1, [(beef, "2")])
    ev = catalog.event(EventType.a_la_carte, pax=10, menus=[(steak, None)])

    assert DemandPlanner(repo).calculate_event_demand(ev.id) == []


@pytest.mark.parametrize(
    "event_type",
    [EventType.a_la_carte, EventType.banquet, EventType.coffee, EventType.buffet, EventType.other],
)
def test_event_without_menus_yields_empty_demand(catalog, repo, event_type):
    ev = catalog.event(event_type, pax=50)

    assert DemandPlanner(repo).calculate_event_demand(ev.id) == []


def test_missing_event_raises_not_found(repo):
    with pytest.raises(EventNotFoundError, match="Event not found"):
        DemandPlanner(repo).calculate_event_demand(999_999)


def test_event_of_another_organization_is_not_found(db_session, catalog):
    ev = catalog.event(EventType.banquet, pax=10)
    other_org_repo = SqlAlchemyRepository(db_session, catalog.org.id + 1)

    with pytest.raises(EventNotFoundError):
        DemandPlanner(other_org_repo).calculate_event_demand(ev.id)


def test_sports_multi_adds_direct_ingredients_as_is(catalog, repo):
    water = catalog.ingredient("Water")
    pasta = catalog.ingredient("Pasta")
    bowl = catalog.recipe("Pasta bowl", 4, [(pasta, "1")])
    ev = catalog.event(
        EventType.sports_multi,
        pax=40,
        menus=[(bowl, None)],
        direct=[(water, "30")],
    )

    demands = {d.ingredient_id: d for d in DemandPlanner(repo).calculate_event_demand(ev.id)}

    assert demands[water.id].quantity_needed == Decimal("30")
    assert demands[water.id].source == DemandSource.direct
    assert demands[pasta.id].quantity_needed == Decimal("10")


def test_direct_ingredients_ignored_outside_policy(catalog, repo):
    water = catalog.ingredient("Water")
    ev = catalog.event(EventType.banquet, pax=40, direct=[(water, "30")])

    assert DemandPlanner(repo).calculate_event_demand(ev.id) == []

    widened = DemandPlanner(repo, direct_ingredient_types={EventType.sports_multi, EventType.banquet})
    assert [d.quantity_needed for d in widened.calculate_event_demand(ev.id)] == [Decimal("30")]


def test_lines_keep_first_seen_order(catalog, repo):
    a = catalog.ingredient("Flour")
    b = catalog.ingredient("Butter")
    c = catalog.ingredient("Sugar")
    cake = catalog.recipe("Cake", 10, [(b, "1"), (a, "2")])
    cookie = catalog.recipe("Cookie", 10, [(c, "1"), (a, "1")])
    ev = catalog.event(EventType.coffee, pax=20, menus=[(cake, None), (cookie, None)])

    demands = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert [d.ingredient_id for d in demands] == [b.id, a.id, c.id]
    assert demands[1].quantity_needed == Decimal("6")


def test_family_without_buffer_falls_back_to_default(catalog, repo):
    dry = catalog.family("Dry goods", None)
    salt = catalog.ingredient("Salt", family=dry)
    recipe = catalog.recipe("Brine", 3, [(salt, "3")])
    ev = catalog.event(EventType.other, pax=10, menus=[(recipe, None)])

    [line] = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert line.quantity_needed == Decimal("10")
    assert line.quantity_with_buffer == Decimal("11.0")


def test_persistence_failure_aborts_the_whole_calculation(db_session, catalog):
    rice = catalog.ingredient("Rice")
    paella = catalog.recipe("Paella", 2, [(rice, "2")])
    ev = catalog.event(EventType.banquet, pax=4, menus=[(paella, None)])

    class BrokenRecipes(SqlAlchemyRepository):
        def get_recipe_with_ingredients(self, recipe_id):
            raise PersistenceError("get_recipe_with_ingredients", "OperationalError")

    with pytest.raises(PersistenceError):
        DemandPlanner(BrokenRecipes(db_session, catalog.org.id)).calculate_event_demand(ev.id)


def test_purchase_quantity_rounds_up_to_cents(catalog, repo):
    fish = catalog.family("Fish", "1.10")
    cod = catalog.ingredient("Cod", family=fish)

    planner = DemandPlanner(repo)

    assert planner.purchase_quantity(cod.id, Decimal("3.333")) == Decimal("3.67")
    assert planner.purchase_quantity(cod.id, Decimal("10")) == Decimal("11.00")


def test_purchase_quantity_of_unknown_ingredient_raises(repo):
    with pytest.raises(IngredientNotFoundError, match="Ingredient not found"):
        DemandPlanner(repo).purchase_quantity(31337, Decimal("1"))


def test_unit_abbreviation_comes_from_the_recipe_line(catalog, repo):
    """
    GIVEN
    - ingrédient stocké en kg, recette exprimée en grammes

    THEN
    - la ligne de demande porte l'unité de la recette ("g")
    """
    grams = catalog.unit("Gram", "g")
    saffron = catalog.ingredient("Saffron")
    paella = catalog.recipe("Paella", 4, [(saffron, "0.5")], unit=grams)
    ev = catalog.event(EventType.banquet, pax=8, menus=[(paella, None)])

    [line] = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert line.unit_id == grams.id
    assert line.unit_abbr == "g"
    assert line.quantity_needed == Decimal("1")


def test_soft_deleted_rows_contribute_nothing(catalog, repo):
    """
    GIVEN
    - un menu dont la recette est supprimée
    - un second menu dont un ingrédient est supprimé

    THEN
    - seule la ligne encore visible reste dans la demande
    """
    rice = catalog.ingredient("Rice")
    lard = catalog.ingredient("Lard")
    gone = catalog.recipe("Old recipe", 1, [(rice, "5")])
    current = catalog.recipe("Rice bowl", 1, [(rice, "1"), (lard, "1")])
    ev = catalog.event(EventType.banquet, pax=2, menus=[(gone, None), (current, None)])
    catalog.soft_delete(gone)
    catalog.soft_delete(lard)

    demands = DemandPlanner(repo).calculate_event_demand(ev.id)

    assert [(d.ingredient_id, d.quantity_needed) for d in demands] == [(rice.id, Decimal("2"))]


def test_family_of_another_organization_is_ignored(db_session, catalog):
    meat = catalog.family("Meat", "1.50")
    beef = catalog.ingredient("Beef", family=meat)
    foreign_org = Organization(name="Other Hotel")
    db_session.add(foreign_org)
    db_session.flush()
    meat.organization_id = foreign_org.id
    db_session.flush()

    planner = DemandPlanner(SqlAlchemyRepository(db_session, catalog.org.id))

    assert planner.purchase_quantity(beef.id, Decimal("10")) == Decimal("11.00")

"""
Static reference data for the coach.

Ingredients, recipes, per-recipe embellishments, the direct substitution
table, category relevance weights and every canned message pool live here.

The catalog is built once, frozen (tuples and read-only mappings), and handed
by reference to each policy. Nothing in the decision layer writes to it.
Custom catalogs can be loaded from YAML or JSON with `load_catalog`.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from .types import Embellishment, Item, Recipe, Step, StepAction

logger = logging.getLogger(__name__)


def _freeze_pool(pool: Mapping[str, Iterable[str]]) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in pool.items()})


@dataclass(frozen=True)
class MessagePools:
    """
    Canned lines the coach can say.

    Timing lines and ingredient lines are format strings; see the agents
    for the placeholders they fill in.
    """
    stance: Mapping[str, Tuple[str, ...]]
    timing: Mapping[str, Tuple[str, ...]]
    ingredient_correct: Tuple[str, ...]
    ingredient_unsure: Tuple[str, ...]
    post_round: Mapping[str, Tuple[str, ...]]
    encouragement: Mapping[str, Tuple[str, ...]]
    fun_facts: Tuple[str, ...]
    cooking_tips: Mapping[str, Tuple[str, ...]]
    hints: Mapping[str, str]
    greeting: str = "Let's cook {task}!"


@dataclass(frozen=True)
class Catalog:
    """
    Immutable reference data shared by every policy.

    Attributes:
        ingredients: Every ingredient definition (quantity is the restock level)
        recipes: Built-in recipes
        embellishments: Recipe name -> creative variations for it
        substitutions: Item name -> ordered list of direct substitutes
        category_relevance: Category -> priority weight for ranking
        messages: Canned message pools
    """
    ingredients: Tuple[Item, ...]
    recipes: Tuple[Recipe, ...]
    embellishments: Mapping[str, Tuple[Embellishment, ...]]
    substitutions: Mapping[str, Tuple[str, ...]]
    category_relevance: Mapping[str, float]
    messages: MessagePools
    default_relevance: float = 0.5

    def ingredient(self, name: str) -> Optional[Item]:
        for item in self.ingredients:
            if item.name == name:
                return item
        return None

    def recipe(self, name: str) -> Optional[Recipe]:
        for recipe in self.recipes:
            if recipe.name == name:
                return recipe
        return None

    def recipe_names(self) -> List[str]:
        return [r.name for r in self.recipes]

    def relevance(self, category: str) -> float:
        return self.category_relevance.get(category, self.default_relevance)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["Catalog"] = None) -> "Catalog":
        """
        Build a catalog from plain data.

        Sections missing from `data` fall back to `base` (the built-in
        catalog by default), so a file may override only what it needs.
        """
        base = base or DEFAULT_CATALOG

        ingredients = base.ingredients
        if "ingredients" in data:
            ingredients = tuple(
                Item(name=i["name"], category=i["category"], quantity=i.get("quantity", 3))
                for i in data["ingredients"]
            )

        recipes = base.recipes
        if "recipes" in data:
            recipes = tuple(
                Recipe(
                    name=r["name"],
                    steps=tuple(Step.from_dict(s) for s in r["steps"]),
                    time_limit=r.get("time_limit", 120),
                    difficulty=r.get("difficulty", 1),
                    description=r.get("description", ""),
                )
                for r in data["recipes"]
            )

        embellishments = base.embellishments
        if "embellishments" in data:
            embellishments = MappingProxyType({
                task: tuple(
                    Embellishment(id=e["id"], bonus=e.get("bonus", 3), message=e.get("message", e["id"]))
                    for e in entries
                )
                for task, entries in data["embellishments"].items()
            })

        substitutions = base.substitutions
        if "substitutions" in data:
            substitutions = _freeze_pool(data["substitutions"])

        relevance = base.category_relevance
        if "category_relevance" in data:
            relevance = MappingProxyType(dict(data["category_relevance"]))

        return cls(
            ingredients=ingredients,
            recipes=recipes,
            embellishments=embellishments,
            substitutions=substitutions,
            category_relevance=relevance,
            messages=base.messages,
            default_relevance=data.get("default_relevance", base.default_relevance),
        )


def load_catalog(path: str) -> Optional[Catalog]:
    """Load a catalog override from a JSON or YAML file."""
    if not os.path.exists(path):
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        if path.endswith((".yaml", ".yml")):
            data = yaml.safe_load(content) or {}
        else:
            data = json.loads(content)

        return Catalog.from_dict(data)

    except Exception as e:
        logger.warning(f"Failed to load catalog from {path}: {e}")
        return None


def _step(action: StepAction, station: str, description: str,
          item: Optional[str] = None, duration: Optional[float] = None) -> Step:
    return Step(action=action, description=description, required_item=item,
                station=station, duration=duration)


PICK, CHOP, MIX, COOK, PLATE = (
    StepAction.PICK, StepAction.CHOP, StepAction.MIX, StepAction.COOK, StepAction.PLATE,
)

_INGREDIENTS = (
    Item("Flour", "dry"), Item("Sugar", "dry"),
    Item("Egg", "dairy"), Item("Milk", "dairy"), Item("Butter", "dairy"),
    Item("Cheese", "dairy"), Item("Cream", "dairy"),
    Item("Tomato", "veggie"), Item("Onion", "veggie"), Item("Garlic", "veggie"),
    Item("Lettuce", "veggie"),
    Item("Pasta", "grain"), Item("Rice", "grain"), Item("Bread", "grain"),
    Item("Chocolate", "sweet"), Item("Honey", "sweet"), Item("PeanutButter", "sweet"),
    Item("Banana", "fruit"), Item("Strawberry", "fruit"), Item("Apple", "fruit"),
    Item("Lemon", "fruit"), Item("Blueberry", "fruit"),
    Item("Vanilla", "spice"), Item("Salt", "spice"), Item("Pepper", "spice"),
)

_RECIPES = (
    Recipe("Pancakes", difficulty=1, time_limit=120, description="Fluffy golden pancakes", steps=(
        _step(PICK, "mixer", "Add flour to the mixer", "Flour"),
        _step(PICK, "mixer", "Crack an egg into the mixer", "Egg"),
        _step(PICK, "mixer", "Pour in some milk", "Milk"),
        _step(PICK, "mixer", "Add a pinch of sugar", "Sugar"),
        _step(MIX, "mixer", "Mix the batter well", duration=3),
        _step(COOK, "stove", "Cook the pancakes on the stove", duration=5),
        _step(PLATE, "plate", "Plate up the pancakes"),
    )),
    Recipe("Fruit Salad", difficulty=1, time_limit=90, description="A refreshing fruit salad", steps=(
        _step(PICK, "cutting", "Grab an apple", "Apple"),
        _step(PICK, "cutting", "Grab a banana", "Banana"),
        _step(PICK, "cutting", "Grab some strawberries", "Strawberry"),
        _step(CHOP, "cutting", "Chop all the fruits", duration=4),
        _step(MIX, "mixer", "Toss them together", duration=2),
        _step(PLATE, "plate", "Serve the salad"),
    )),
    Recipe("Smoothie", difficulty=1, time_limit=60, description="A blended smoothie", steps=(
        _step(PICK, "mixer", "Add a banana", "Banana"),
        _step(PICK, "mixer", "Add strawberries", "Strawberry"),
        _step(PICK, "mixer", "Pour in milk", "Milk"),
        _step(MIX, "mixer", "Blend it all", duration=3),
        _step(PLATE, "plate", "Pour into a glass"),
    )),
    Recipe("Lemonade", difficulty=1, time_limit=75, description="Fresh squeezed lemonade", steps=(
        _step(PICK, "cutting", "Grab some lemons", "Lemon"),
        _step(CHOP, "cutting", "Squeeze the lemons", duration=3),
        _step(PICK, "mixer", "Add sugar", "Sugar"),
        _step(MIX, "mixer", "Mix with water", duration=2),
        _step(PLATE, "plate", "Pour into a glass"),
    )),
    Recipe("Chocolate Cookie", difficulty=2, time_limit=150, description="Warm chocolate cookies", steps=(
        _step(PICK, "mixer", "Add flour", "Flour"),
        _step(PICK, "mixer", "Add butter", "Butter"),
        _step(PICK, "mixer", "Add sugar", "Sugar"),
        _step(PICK, "mixer", "Crack an egg", "Egg"),
        _step(PICK, "mixer", "Add chocolate chips", "Chocolate"),
        _step(MIX, "mixer", "Mix the cookie dough", duration=4),
        _step(COOK, "stove", "Bake the cookies", duration=8),
        _step(PLATE, "plate", "Plate the fresh cookies"),
    )),
    Recipe("Pasta Marinara", difficulty=2, time_limit=180, description="Pasta with tomato sauce", steps=(
        _step(PICK, "cutting", "Grab tomatoes", "Tomato"),
        _step(PICK, "cutting", "Grab an onion", "Onion"),
        _step(CHOP, "cutting", "Chop the veggies", duration=4),
        _step(PICK, "stove", "Add pasta to the pot", "Pasta"),
        _step(COOK, "stove", "Cook pasta and sauce", duration=8),
        _step(PICK, "plate", "Add cheese on top", "Cheese"),
        _step(PLATE, "plate", "Plate the pasta"),
    )),
    Recipe("Omelette", difficulty=2, time_limit=120, description="A fluffy veggie omelette", steps=(
        _step(PICK, "mixer", "Crack some eggs", "Egg"),
        _step(PICK, "mixer", "Splash of milk", "Milk"),
        _step(MIX, "mixer", "Whisk the eggs", duration=2),
        _step(PICK, "cutting", "Grab a tomato", "Tomato"),
        _step(PICK, "cutting", "Grab an onion", "Onion"),
        _step(CHOP, "cutting", "Dice the veggies", duration=3),
        _step(COOK, "stove", "Cook the omelette", duration=5),
        _step(PICK, "plate", "Cheese on top", "Cheese"),
        _step(PLATE, "plate", "Fold and plate"),
    )),
    Recipe("Grilled Cheese", difficulty=2, time_limit=100, description="Crispy, melty grilled cheese", steps=(
        _step(PICK, "cutting", "Grab bread slices", "Bread"),
        _step(PICK, "cutting", "Spread butter", "Butter"),
        _step(PICK, "stove", "Layer the cheese", "Cheese"),
        _step(COOK, "stove", "Grill until golden", duration=6),
        _step(PLATE, "plate", "Slice and serve"),
    )),
    Recipe("PB&J Sandwich", difficulty=2, time_limit=80, description="The classic PB&J", steps=(
        _step(PICK, "cutting", "Grab bread", "Bread"),
        _step(PICK, "cutting", "Spread peanut butter", "PeanutButter"),
        _step(PICK, "cutting", "Add strawberry jam", "Strawberry"),
        _step(CHOP, "cutting", "Cut in half", duration=2),
        _step(PLATE, "plate", "Plate the sandwich"),
    )),
    Recipe("Fried Rice", difficulty=3, time_limit=200, description="Savory veggie fried rice", steps=(
        _step(PICK, "stove", "Add rice to the wok", "Rice"),
        _step(COOK, "stove", "Cook the rice", duration=5),
        _step(PICK, "cutting", "Grab an onion", "Onion"),
        _step(PICK, "cutting", "Grab garlic", "Garlic"),
        _step(PICK, "cutting", "Grab a tomato", "Tomato"),
        _step(CHOP, "cutting", "Dice all veggies", duration=5),
        _step(PICK, "stove", "Crack an egg in", "Egg"),
        _step(COOK, "stove", "Stir-fry everything", duration=7),
        _step(PICK, "plate", "Season with salt", "Salt"),
        _step(PLATE, "plate", "Plate the fried rice"),
    )),
    Recipe("Bruschetta", difficulty=3, time_limit=160, description="Italian bruschetta", steps=(
        _step(PICK, "stove", "Toast the bread", "Bread"),
        _step(COOK, "stove", "Toast until crispy", duration=4),
        _step(PICK, "cutting", "Grab tomatoes", "Tomato"),
        _step(PICK, "cutting", "Grab an onion", "Onion"),
        _step(PICK, "cutting", "Grab garlic", "Garlic"),
        _step(CHOP, "cutting", "Finely dice everything", duration=5),
        _step(MIX, "mixer", "Mix the topping", duration=2),
        _step(PICK, "plate", "Add salt", "Salt"),
        _step(PLATE, "plate", "Assemble and serve"),
    )),
    Recipe("Berry Parfait", difficulty=3, time_limit=150, description="Layered berry parfait", steps=(
        _step(PICK, "cutting", "Grab strawberries", "Strawberry"),
        _step(PICK, "cutting", "Grab blueberries", "Blueberry"),
        _step(CHOP, "cutting", "Slice the berries", duration=3),
        _step(PICK, "mixer", "Add cream", "Cream"),
        _step(PICK, "mixer", "Add vanilla", "Vanilla"),
        _step(PICK, "mixer", "Add sugar", "Sugar"),
        _step(MIX, "mixer", "Whip the cream", duration=4),
        _step(PICK, "plate", "Drizzle honey", "Honey"),
        _step(PLATE, "plate", "Layer the parfait"),
    )),
    Recipe("Banana Split", difficulty=3, time_limit=180, description="The ultimate banana split", steps=(
        _step(PICK, "cutting", "Grab a banana", "Banana"),
        _step(CHOP, "cutting", "Split the banana", duration=2),
        _step(PICK, "mixer", "Add cream", "Cream"),
        _step(PICK, "mixer", "Add vanilla", "Vanilla"),
        _step(MIX, "mixer", "Whip the cream", duration=3),
        _step(PICK, "stove", "Melt chocolate", "Chocolate"),
        _step(COOK, "stove", "Melt until smooth", duration=4),
        _step(PICK, "plate", "Add strawberries", "Strawberry"),
        _step(PICK, "plate", "Drizzle honey", "Honey"),
        _step(PLATE, "plate", "Assemble the split"),
    )),
)


def _emb(*entries: Tuple[str, int, str]) -> Tuple[Embellishment, ...]:
    return tuple(Embellishment(id=i, bonus=b, message=m) for i, b, m in entries)


_EMBELLISHMENTS = {
    "Pancakes": _emb(
        ("choco_drizzle", 3, "Chocolate drizzle!"),
        ("fruit_topping", 3, "Strawberries on top!"),
        ("whipped_cream", 2, "Whipped cream?"),
        ("funny_face", 4, "Make a funny face!"),
    ),
    "Fruit Salad": _emb(
        ("honey_drizzle", 3, "Honey drizzle!"),
        ("yogurt_dip", 2, "Yogurt dip!"),
        ("star_shapes", 4, "Star-shaped cuts!"),
        ("rainbow_arrange", 3, "Rainbow arrangement!"),
    ),
    "Chocolate Cookie": _emb(
        ("sprinkles", 2, "Colorful sprinkles!"),
        ("double_choco", 3, "Double chocolate!"),
        ("cookie_sandwich", 5, "Ice cream sandwich!"),
        ("heart_shape", 3, "Heart-shaped!"),
    ),
    "Pasta Marinara": _emb(
        ("extra_cheese", 2, "Extra cheese!"),
        ("herb_garnish", 3, "Herb garnish!"),
        ("garlic_bread", 4, "Garlic bread on the side!"),
    ),
    "Smoothie": _emb(
        ("whipped_top", 2, "Whipped cream top!"),
        ("layer_colors", 3, "Layered colors!"),
        ("frozen_style", 3, "Frozen style!"),
    ),
    "Omelette": _emb(
        ("herbs_top", 2, "Fresh herbs!"),
        ("pepper_kick", 3, "Spicy kick!"),
        ("folded_art", 4, "Artistic fold!"),
    ),
    "Grilled Cheese": _emb(
        ("tomato_soup", 4, "With tomato soup!"),
        ("double_cheese", 3, "Double cheese!"),
        ("crispy_edges", 2, "Extra crispy!"),
    ),
    "Fried Rice": _emb(
        ("soy_drizzle", 2, "Soy drizzle!"),
        ("egg_flower", 3, "Egg flower on top!"),
        ("veggie_art", 4, "Veggie art plating!"),
    ),
    "Lemonade": _emb(
        ("mint_leaf", 2, "Fresh mint!"),
        ("berry_twist", 3, "Berry twist!"),
        ("ice_sparkle", 2, "Sparkling ice!"),
    ),
    "PB&J Sandwich": _emb(
        ("banana_slices", 3, "Banana slices!"),
        ("honey_drizzle", 2, "Honey drizzle!"),
        ("funny_cut", 3, "Fun shape cut!"),
    ),
    "Bruschetta": _emb(
        ("balsamic", 3, "Balsamic glaze!"),
        ("cheese_top", 2, "Cheese topping!"),
        ("garlic_rub", 2, "Extra garlic!"),
    ),
    "Berry Parfait": _emb(
        ("granola_layer", 3, "Crunchy granola!"),
        ("choco_shavings", 3, "Chocolate shavings!"),
        ("mint_sprig", 2, "Mint sprig!"),
    ),
    "Banana Split": _emb(
        ("cherry_top", 2, "Cherry on top!"),
        ("nuts_sprinkle", 3, "Nuts sprinkle!"),
        ("triple_scoop", 4, "Triple scoop!"),
    ),
}

# First available entry wins, in this order.
_SUBSTITUTIONS = {
    "Milk": ["Cream", "Butter"],
    "Butter": ["Cream", "Milk"],
    "Sugar": ["Honey", "Chocolate"],
    "Honey": ["Sugar"],
    "Egg": ["Banana"],
    "Flour": ["Bread"],
    "Bread": ["Flour"],
    "Apple": ["Banana", "Strawberry", "Blueberry"],
    "Banana": ["Apple", "Strawberry", "Blueberry"],
    "Strawberry": ["Banana", "Apple", "Blueberry"],
    "Blueberry": ["Strawberry", "Banana", "Apple"],
    "Tomato": ["Onion", "Pepper"],
    "Onion": ["Garlic", "Tomato"],
    "Garlic": ["Onion"],
    "Lemon": ["Apple"],
    "Cream": ["Milk", "Butter"],
    "Vanilla": ["Sugar", "Honey"],
    "Cheese": ["Butter", "Cream"],
    "PeanutButter": ["Butter", "Honey"],
    "Pepper": ["Salt", "Garlic"],
}

_CATEGORY_RELEVANCE = {
    "dairy": 1.2,
    "fruit": 1.1,
    "veggie": 1.0,
    "dry": 0.9,
    "grain": 0.8,
    "sweet": 0.7,
    "spice": 0.6,
}

_MESSAGES = MessagePools(
    stance=_freeze_pool({
        "help": [
            "Let me help you with this!",
            "Don't worry, I've got your back!",
            "Here's a hint for you!",
            "We'll do this together!",
            "Let me show you how!",
        ],
        "compete": [
            "I bet I can finish faster!",
            "Race you to the next step!",
            "Catch me if you can!",
            "Can you keep up with me?",
            "Let's see who plates first!",
            "Speed cooking challenge!",
        ],
        "neutral": [
            "Looking good, chef!",
            "What should we cook next?",
            "The kitchen smells amazing!",
            "Nice technique!",
            "Cooking is so much fun!",
        ],
        "cheer": [
            "You're doing AMAZING!",
            "Star chef in the making!",
            "That was perfect!",
            "You're getting better every time!",
            "Round of applause for you!",
            "Keep that streak going!",
        ],
        "teach": [
            "Pro tip: follow the recipe steps!",
            "Look at the recipe panel!",
            "Drag ingredients to the right station!",
            "Click on stations when the step says to!",
            "Great chefs take their time!",
        ],
    }),
    timing=_freeze_pool({
        "very_early": ["Super quick! But be careful...", "Speed mode! Hope it's done..."],
        "early": ["Quick cook! ~{seconds:g}s", "Fast! About {seconds:g}s should work"],
        "perfect": ["Perfect timing: ~{seconds:g}s!", "Just right: {seconds:g} seconds!",
                    "{seconds:g}s, that's the sweet spot!"],
        "late": ["Take your time: ~{seconds:g}s", "Nice and slow: {seconds:g}s"],
        "very_late": ["Careful! That's a long time...", "Don't burn it! Watch closely!"],
    }),
    ingredient_correct=(
        "Grab the {item}!",
        "{item} is next!",
        "I see {item}, perfect choice!",
        "Let's use {item}!",
    ),
    ingredient_unsure=(
        "Hmm, I think we need {required}...",
    ),
    post_round=_freeze_pool({
        "perfect": [
            "PERFECT round! You're a superstar chef!",
            "Flawless! I couldn't have done better!",
            "No mistakes at all, incredible!",
        ],
        "completed": [
            "Great job! We finished the recipe!",
            "Nice cooking! Let's try another!",
            "That looks delicious!",
        ],
        "failed": [
            "Don't worry, practice makes perfect!",
            "We'll get it next time!",
            "You're improving every round!",
        ],
    }),
    encouragement=_freeze_pool({
        "plenty": ["Plenty of time!", "No rush!", "Cooking away!"],
        "halfway": ["Halfway there!", "Keep an eye on it!", "Smells good!"],
        "close": ["Almost done!", "Getting close!", "Mmm, almost ready!"],
        "now": ["NOW! Take it off!", "Quick, it's done!", "Don't burn it!"],
        "done": ["Done! Time to move on!"],
    }),
    fun_facts=(
        "The tallest pancake stack was over 3 feet high!",
        "Chocolate was once used as money by the Aztecs!",
        "Strawberries are the only fruit with seeds on the outside!",
        "Bananas are berries, but strawberries aren't!",
        "A chef's hat traditionally has 100 folds, one for each way to cook an egg!",
        "Apples float in water because they're 25% air!",
        "Honey never expires. 3000-year-old honey has been found still good!",
        "Lemons contain more sugar than strawberries!",
        "It takes about 21 pounds of milk to make 1 pound of butter!",
        "Peanuts aren't nuts, they're legumes that grow underground!",
        "Rice feeds more than half the world's population!",
        "Blueberries are one of the only natural foods that are truly blue!",
    ),
    cooking_tips=_freeze_pool({
        "chop": [
            "Tip: Curl your fingers when chopping to keep them safe!",
            "A sharp knife is actually safer than a dull one!",
            "Cut veggies the same size for even cooking!",
        ],
        "mix": [
            "Tip: Mix in one direction for a smoother texture!",
            "Don't overmix, it can make things tough!",
            "Room temperature ingredients mix better!",
        ],
        "cook": [
            "Tip: Let the pan heat up before adding food!",
            "Don't stir too often, let things brown!",
            "Lower heat means more control over cooking!",
        ],
        "plate": [
            "Tip: We eat with our eyes first, make it pretty!",
            "Odd numbers look better on a plate!",
        ],
        "pick": [
            "Tip: Read the recipe first, then gather ingredients!",
            "Fresh ingredients make the best dishes!",
        ],
    }),
    hints=MappingProxyType({
        "pick": "Drag the {item} to the {station}",
        "chop": "Click the CUT button!",
        "cook": "Click the COOK button!",
        "mix": "Click the MIX button!",
        "plate": "Drag it to the Plating Area!",
    }),
)

DEFAULT_CATALOG = Catalog(
    ingredients=_INGREDIENTS,
    recipes=_RECIPES,
    embellishments=MappingProxyType(_EMBELLISHMENTS),
    substitutions=_freeze_pool(_SUBSTITUTIONS),
    category_relevance=MappingProxyType(dict(_CATEGORY_RELEVANCE)),
    messages=_MESSAGES,
)

import logging
import math
import operator

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CAPACITY = 16
MAXIMUM_CAPACITY = 1 << 30
DEFAULT_LOAD_FACTOR = 0.75
# Largest value a 32-bit signed threshold can hold; a table with this threshold never grows again.
MAX_THRESHOLD = (1 << 31) - 1
# Tables up to this length recompute the threshold from the load factor when they double.
SMALL_TABLE_LIMIT = 8

_MISSING = object()


class IllegalStateError(RuntimeError):
    pass


# Folds the high 16 bits of the key's hash into the low 16 bits. Only the low bits pick a bucket
# because the table length is a power of two. The native hash is truncated to 32 unsigned bits
# first so the result is the same width whatever hash() returns. None always hashes to 0. O(1)
def spread_hash(key):
    if key is None:
        return 0
    h = hash(key) & 0xFFFFFFFF
    return h ^ (h >> 16)


# Smallest power of two that is at least cap, never more than maximum. Requests of 0 or 1 give 4.
def table_size_for(cap, maximum=MAXIMUM_CAPACITY):
    if cap <= 1:
        return 4
    n = 1 << (cap - 1).bit_length()
    return maximum if n >= maximum else n


class Node(object):
    # One key-value binding and the link to the next binding in the same bucket. The spread hash
    # is cached so lookups and resizes never call hash() on the key again.
    __slots__ = ("hash", "key", "value", "next")

    def __init__(self, hash_value, key, value, next_node=None):
        self.hash = hash_value
        self.key = key
        self.value = value
        self.next = next_node

    def set_value(self, value):
        old_value = self.value
        self.value = value
        return old_value

    # Lets an entry be unpacked as key, value = entry
    def __iter__(self):
        yield self.key
        yield self.value

    def __eq__(self, other):
        if other is self:
            return True
        if isinstance(other, Node):
            return self.key == other.key and self.value == other.value
        if isinstance(other, tuple) and len(other) == 2:
            return self.key == other[0] and self.value == other[1]
        return NotImplemented

    def __hash__(self):
        return hash(self.key) ^ hash(self.value)

    def __repr__(self):
        return "%r=%r" % (self.key, self.value)


class HashMap(object):
    DEFAULT_INITIAL_CAPACITY = DEFAULT_INITIAL_CAPACITY
    MAXIMUM_CAPACITY = MAXIMUM_CAPACITY
    SMALL_TABLE_LIMIT = SMALL_TABLE_LIMIT

    # O(1). No bucket list is created here; the table is allocated by the first insertion.
    # capacity is the number of buckets wanted for that first allocation and is rounded up to a
    # power of two. Leaving it out means the default of 16. capacity must be an int.
    def __init__(self, capacity=None, load_factor=DEFAULT_LOAD_FACTOR):
        if capacity is not None:
            capacity = operator.index(capacity)
        if capacity is not None and capacity < 0:
            raise ValueError(f"Illegal initial capacity: {capacity}")
        if load_factor is None or math.isnan(load_factor) or load_factor <= 0:
            raise ValueError(f"Illegal load factor: {load_factor}")
        self.load_factor = load_factor
        self.table = None
        self.len = 0
        self._threshold = 0
        if capacity is None:
            self.initial_capacity = 0
        else:
            self.initial_capacity = table_size_for(min(capacity, self.MAXIMUM_CAPACITY), self.MAXIMUM_CAPACITY)
        self._key_set = None
        self._values = None
        self._entry_set = None

    # Size at which the next insertion resizes the table. Until the table exists this is the
    # capacity the first allocation will use.
    @property
    def threshold(self):
        if self.table is None:
            return self.initial_capacity
        return self._threshold

    def size(self):
        return self.len

    def is_empty(self):
        return self.len == 0

    def __len__(self):
        return self.len

    # Raises KeyError for a missing key, unlike get(). O(1)
    def __getitem__(self, key):
        node = self.get_node(key)
        if node is None:
            raise KeyError(key)
        return node.value

    def __setitem__(self, key, value):
        self.put(key, value)

    def __delitem__(self, key):
        if self._remove_node(spread_hash(key), key) is None:
            raise KeyError(key)

    def __contains__(self, key):
        return self.contains_key(key)

    # Iterates over keys in bucket order
    def __iter__(self):
        return KeyIterator(self)

    def key_iterator(self):
        return KeyIterator(self)

    def value_iterator(self):
        return ValueIterator(self)

    # Returns the value bound to key, or default. A None result does not prove the key is absent
    # because None can be stored as a value; use contains_key() for that.
    def get(self, key, default=None):
        node = self.get_node(key)
        if node is None:
            return default
        return node.value

    # Walks the chain in the key's bucket. The cached hash is compared before the key so most
    # non-matching nodes are skipped without calling __eq__. O(1) with few collisions.
    def get_node(self, key):
        tab = self.table
        if tab is None or self.len == 0:
            return None
        h = spread_hash(key)
        node = tab[(len(tab) - 1) & h]
        while node is not None:
            if node.hash == h and (node.key is key or node.key == key):
                return node
            node = node.next
        return None

    # Binds value to key and returns the value it replaces, or None for a new key. New keys go at
    # the tail of their chain. Replacing a value never resizes; a new key resizes once the size
    # passes the threshold. O(1) amortized.
    def put(self, key, value):
        h = spread_hash(key)
        tab = self.table
        if tab is None:
            tab = self.resize()
        i = (len(tab) - 1) & h
        node = tab[i]
        if node is None:
            tab[i] = Node(h, key, value)
        else:
            while True:
                if node.hash == h and (node.key is key or node.key == key):
                    return node.set_value(value)
                if node.next is None:
                    break
                node = node.next
            node.next = Node(h, key, value)
        self.len += 1
        if self.len > self._threshold:
            self.resize()
        return None

    # Allocates the table on first use, otherwise doubles it. Because both lengths are powers of
    # two a node in bucket j either stays at j or moves to j + old_cap, decided by the single hash
    # bit old_cap. Each chain is split into those two halves in one pass with the node order kept.
    # O(n)
    def resize(self):
        old_tab = self.table
        if old_tab is None:
            old_cap = 0
            if self.initial_capacity == 0:
                new_cap = self.DEFAULT_INITIAL_CAPACITY
                new_thr = self._threshold_for(new_cap)
            elif self.initial_capacity < self.MAXIMUM_CAPACITY:
                new_cap = self.initial_capacity
                new_thr = self._threshold_for(new_cap)
            else:
                new_cap = self.initial_capacity
                new_thr = MAX_THRESHOLD
        else:
            old_cap = len(old_tab)
            if old_cap >= self.MAXIMUM_CAPACITY:
                self._threshold = MAX_THRESHOLD
                logger.debug(f"Table already at maximum capacity {old_cap}, resizing disabled")
                return old_tab
            new_cap = old_cap << 1
            if old_cap <= self.SMALL_TABLE_LIMIT:
                new_thr = self._threshold_for(new_cap)
            else:
                new_thr = min(self._threshold << 1, MAX_THRESHOLD)

        new_tab = [None] * new_cap
        self._threshold = new_thr
        self.table = new_tab
        if old_tab is not None:
            for j in range(old_cap):
                node = old_tab[j]
                if node is None:
                    continue
                old_tab[j] = None
                if node.next is None:
                    new_tab[(new_cap - 1) & node.hash] = node
                    continue
                lo_head = lo_tail = None
                hi_head = hi_tail = None
                while node is not None:
                    next_node = node.next
                    if (node.hash & old_cap) == 0:
                        if lo_tail is None:
                            lo_head = node
                        else:
                            lo_tail.next = node
                        lo_tail = node
                    else:
                        if hi_tail is None:
                            hi_head = node
                        else:
                            hi_tail.next = node
                        hi_tail = node
                    node = next_node
                if lo_tail is not None:
                    lo_tail.next = None
                    new_tab[j] = lo_head
                if hi_tail is not None:
                    hi_tail.next = None
                    new_tab[j + old_cap] = hi_head
        logger.debug(f"Resized table from {old_cap} to {new_cap} buckets, threshold {new_thr}")
        return new_tab

    # Saturates at MAX_THRESHOLD, which also covers an infinite load factor.
    def _threshold_for(self, capacity):
        threshold = capacity * self.load_factor
        if threshold >= MAX_THRESHOLD:
            return MAX_THRESHOLD
        return int(threshold)

    # Removes the binding for key and returns its value, or None if there was none. O(1)
    def remove(self, key):
        node = self._remove_node(spread_hash(key), key)
        if node is None:
            return None
        return node.value

    # Removes and returns the value for key. Without a default a missing key raises KeyError.
    def pop(self, key, default=_MISSING):
        node = self._remove_node(spread_hash(key), key)
        if node is not None:
            return node.value
        if default is _MISSING:
            raise KeyError(key)
        return default

    # Unlinks the node for key through its predecessor and returns it. When value is given the
    # node is only removed if it holds an equal value.
    def _remove_node(self, h, key, value=_MISSING):
        tab = self.table
        if tab is None:
            return None
        i = (len(tab) - 1) & h
        prev = None
        node = tab[i]
        while node is not None:
            if node.hash == h and (node.key is key or node.key == key):
                if value is not _MISSING and not (node.value is value or node.value == value):
                    return None
                if prev is None:
                    tab[i] = node.next
                else:
                    prev.next = node.next
                self.len -= 1
                return node
            prev = node
            node = node.next
        return None

    # Copies every binding of other into this map, values from other winning on shared keys. The
    # table is sized for the incoming entries up front so the copy does not resize step by step.
    # other may be a HashMap, anything with items() such as a dict, or an iterable of pairs. O(n)
    def put_all(self, other):
        if isinstance(other, HashMap):
            entries = other.entry_set()
            count = other.size()
        elif hasattr(other, "items"):
            entries = other.items()
            count = len(other)
        else:
            entries = list(other)
            count = len(entries)
        if count > 0:
            if self.table is None:
                wanted = count / self.load_factor + 1.0
                wanted = int(wanted) if wanted < self.MAXIMUM_CAPACITY else self.MAXIMUM_CAPACITY
                if self.initial_capacity < wanted:
                    self.initial_capacity = table_size_for(wanted, self.MAXIMUM_CAPACITY)
            else:
                while count > self._threshold and len(self.table) < self.MAXIMUM_CAPACITY:
                    self.resize()
        for key, value in entries:
            self.put(key, value)

    # Empties every bucket but keeps the table at its current length. O(n) in the table length
    def clear(self):
        tab = self.table
        if tab is not None:
            for i in range(len(tab)):
                tab[i] = None
        self.len = 0

    def contains_key(self, key):
        return self.get_node(key) is not None

    # Scans every chain of every bucket, stopping at the first match. O(n)
    def contains_value(self, value):
        tab = self.table
        if tab is None or self.len == 0:
            return False
        for node in tab:
            while node is not None:
                if node.value is value or node.value == value:
                    return True
                node = node.next
        return False

    def key_set(self):
        if self._key_set is None:
            self._key_set = KeySet(self)
        return self._key_set

    def values(self):
        if self._values is None:
            self._values = Values(self)
        return self._values

    def entry_set(self):
        if self._entry_set is None:
            self._entry_set = EntrySet(self)
        return self._entry_set


class HashIterator(object):
    # Cursor over the table in bucket order. next is the node the following call returns, current
    # the node returned last (cleared by remove()), and index is one past the bucket that next was
    # found in. O(1) to create apart from finding the first non-empty bucket.
    def __init__(self, hash_map):
        self.map = hash_map
        self.next = None
        self.current = None
        self.index = 0
        tab = hash_map.table
        if tab is not None and hash_map.len > 0:
            self.next = self._scan(tab)

    # Moves index forward to the first non-empty bucket and returns its head, leaving index one past
    # that bucket. Runs off the end with index equal to the table length.
    def _scan(self, tab):
        length = len(tab)
        while self.index < length and tab[self.index] is None:
            self.index += 1
        if self.index == length:
            return None
        node = tab[self.index]
        self.index += 1
        return node

    # Conforms to iterator protocol. Runs in O(1)
    def __iter__(self):
        return self

    def has_next(self):
        return self.next is not None

    # Returns the pending node, then stays in the same chain if it has a successor or scans forward
    # to the next non-empty bucket otherwise.
    def next_node(self):
        node = self.next
        if node is None:
            raise StopIteration
        self.current = node
        self.next = node.next
        tab = self.map.table
        if self.next is None and tab is not None:
            self.next = self._scan(tab)
        return node

    # Removes the node returned by the last next_node() call without disturbing next, so the rest of
    # the iteration sees exactly the nodes it would have seen.
    def remove(self):
        tab = self.map.table
        current = self.current
        if tab is None or current is None:
            raise IllegalStateError("remove() must follow a call to next()")
        if self.next is tab[self.index - 1]:
            # The cursor has left current's bucket. It is the nearest non-empty bucket behind the
            # one next was found in, and current is the tail of its chain.
            i = self.index - 2
            while tab[i] is None:
                i -= 1
            if tab[i] is current:
                tab[i] = None
            else:
                prev = tab[i]
                while prev.next is not current:
                    prev = prev.next
                prev.next = None
        else:
            # current.next is self.next, both in bucket index - 1
            head = self.index - 1
            if tab[head] is current:
                tab[head] = self.next
            else:
                prev = tab[head]
                while prev.next is not current:
                    prev = prev.next
                prev.next = self.next
        self.current = None
        self.map.len -= 1


class KeyIterator(HashIterator):
    def __next__(self):
        return self.next_node().key


class ValueIterator(HashIterator):
    def __next__(self):
        return self.next_node().value


class EntryIterator(HashIterator):
    def __next__(self):
        return self.next_node()


class KeySet(object):
    # Live view of the keys. Holds nothing but the map, so every call sees the map's current state.
    def __init__(self, hash_map):
        self.map = hash_map

    def size(self):
        return self.map.size()

    def __len__(self):
        return self.map.size()

    def clear(self):
        self.map.clear()

    def __iter__(self):
        return KeyIterator(self.map)

    def contains(self, key):
        return self.map.contains_key(key)

    def __contains__(self, key):
        return self.map.contains_key(key)

    # Returns True if the key was present
    def remove(self, key):
        return self.map._remove_node(spread_hash(key), key) is not None


class Values(object):
    def __init__(self, hash_map):
        self.map = hash_map

    def size(self):
        return self.map.size()

    def __len__(self):
        return self.map.size()

    def clear(self):
        self.map.clear()

    def __iter__(self):
        return ValueIterator(self.map)

    def contains(self, value):
        return self.map.contains_value(value)

    def __contains__(self, value):
        return self.map.contains_value(value)

    # Removes the first binding, in iteration order, whose value equals value. O(n)
    def remove(self, value):
        iterator = ValueIterator(self.map)
        while iterator.has_next():
            candidate = next(iterator)
            if candidate is value or candidate == value:
                iterator.remove()
                return True
        return False


def _entry_parts(entry):
    if isinstance(entry, Node):
        return entry.key, entry.value
    if isinstance(entry, tuple) and len(entry) == 2:
        return entry
    return None


class EntrySet(object):
    # Entries are the map's own nodes, so set_value() on an entry writes through to the map.
    def __init__(self, hash_map):
        self.map = hash_map

    def size(self):
        return self.map.size()

    def __len__(self):
        return self.map.size()

    def clear(self):
        self.map.clear()

    def __iter__(self):
        return EntryIterator(self.map)

    # entry is a Node or a (key, value) pair. It is contained when the key is bound to an equal value.
    def contains(self, entry):
        parts = _entry_parts(entry)
        if parts is None:
            return False
        node = self.map.get_node(parts[0])
        return node is not None and node == parts

    def __contains__(self, entry):
        return self.contains(entry)

    # Removes the binding only if both key and value match. Returns True if something was removed.
    def remove(self, entry):
        parts = _entry_parts(entry)
        if parts is None:
            return False
        key, value = parts
        return self.map._remove_node(spread_hash(key), key, value) is not None

"""Time, duration, query result value, histogram and silence models."""
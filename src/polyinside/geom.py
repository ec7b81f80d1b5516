## vector and point primitives for polyinside
## Copyright (c) 2020 Richard DeVaul

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""vector and point primitives for **polyinside**

vectors
=======

vectors are defined as a list of four numbers, i.e. ``[x,y,z,w]``.
The w coordinate is a homogeneous normalization factor; ordinary
geometry lies in the w=1 hyperplane and the R^3 operations below
ignore it.

points
======

Any vector that lies in the w>0 half-space is a point.  ``point()``
makes one from scalars or from any sequence of at least three numbers
(tuples, lists, numpy rows), so query points supplied by callers can
be normalized in one place.

bounding boxes
==============

A bounding box is a pair of points spanning the "lower bottom left"
to "upper top right" of a figure, *e.g.* ``bbx =
[[xmin,ymin,zmin,1],[xmax,ymax,zmax,1]]``.
"""

from math import sqrt
import numbers

## constants
epsilon=0.000005

## operations on scalars
## -----------------------

## booleans are ints as far as isinstance is concerned, so exclude
## them explicitly
def isgoodnum(n):
    """ determine if an argument is actually a scalar number, and not boolean
    """
    return (not isinstance(n,bool)) and isinstance(n,numbers.Real)

## operations on vectors
## ------------------------

def vect(a=False,b=False,c=False,d=False):
    """Convenience function for making a homogeneous coordinates 4 vector
from practically anything
    """
    r = [0,0,0,1]
    if isgoodnum(a):
        r[0]=a
        if isgoodnum(b):
            r[1]=b
            if isgoodnum(c):
                r[2]=c
                if isgoodnum(d):
                    r[3]=d
    elif isinstance(a,(tuple,list)):
        for i in range(min(4,len(a))):
            x=a[i]
            if isgoodnum(x):
                r[i]=x
    return r

def isvect(x):
    """
    check to see if argument is a proper vector for our purposes
    """
    return isinstance(x,list) and len(x) == 4 and all(map(isgoodnum,x))

## R^3 -> R^3 functions: ignore w component
## ------------------------------------------------
def add(a,b):
    """ 3 vector, `a + b`"""
    return [a[0]+b[0],a[1]+b[1],a[2]+b[2],1.0]

def sub(a,b):
    """ 3 vector, `a - b`"""
    return [a[0]-b[0],a[1]-b[1],a[2]-b[2],1.0]

def scale3(a,c):
    """ 3 vector, vector ''a'' times scalar ``c``, `a * c`"""
    return [a[0]*c,a[1]*c,a[2]*c,1.0]

def cross(a,b):
    """Compute the cross generalized product of a x b, assuming that both
    fall into the w=1 hyperplane

    """
    return [ a[1]*b[2] - a[2]*b[1],
             a[2]*b[0] - a[0]*b[2],
             a[0]*b[1] - a[1]*b[0],
             1.0 ]

## R^3 -> R functions -- ignore w component
## ----------------------------------------
def dot(a,b):
    """ 3 vector ``a`` dot ``b`` """
    return a[0]*b[0]+a[1]*b[1]+a[2]*b[2]

def mag(a):
    """ compute the magnitude of 3 vector ``a``"""
    return sqrt(a[0]*a[0]+a[1]*a[1]+a[2]*a[2])

def normalize(a):
    """return ``a`` scaled to unit length as a direction vector (w=0).
    Raises ``ValueError`` for a zero-length vector"""
    m = mag(a)
    if m < epsilon*epsilon:
        raise ValueError('cannot normalize zero-length vector')
    return [a[0]/m,a[1]/m,a[2]/m,0.0]

## R^3 -> bool functions
## ---------------------

def isinsidebbox(bbox,p):
    """ does point ``p`` lie inside (or on) 3D bounding box ``bbox``?"""
    return p[0] >= bbox[0][0] and p[0] <= bbox[1][0] and\
        p[1] >= bbox[0][1] and p[1] <= bbox[1][1] and\
        p[2] >= bbox[0][2] and p[2] <= bbox[1][2]

def bboxcenter(bbox):
    """ center point of bounding box ``bbox``"""
    return scale3(add(bbox[0],bbox[1]),0.5)

def bboxdim(box):
    """ return length, width, and height of a bounding box"""
    return [box[1][0] - box[0][0],
            box[1][1] - box[0][1],
            box[1][2] - box[0][2]]

def pointsbbox(points):
    """ compute the bounding box of a non-empty iterable of points"""
    pts = list(points)
    if not pts:
        raise ValueError('cannot compute bounding box of empty point list')
    mins = [min(p[i] for p in pts) for i in range(3)]
    maxs = [max(p[i] for p in pts) for i in range(3)]
    return [point(mins[0],mins[1],mins[2]),
            point(maxs[0],maxs[1],maxs[2])]


## points
## --------------------

def point(x=False,y=False,z=False,w=False):
    """Point creation from a point, a coordinate sequence, or scalars"""
    if ispoint(x):
        return list(x)
    if not isgoodnum(x) and hasattr(x,'__len__'):
        if len(x) < 3:
            raise ValueError('point needs at least three coordinates, got {}'.format(x))
        coords = [x[0],x[1],x[2]]
        for c in coords:
            if not isgoodnum(c):
                raise ValueError('bad coordinate in point(): {}'.format(c))
        return [float(c) for c in coords] + [1.0]
    r = [0,0,0,1]
    if isgoodnum(x):
        r[0]=x
        if isgoodnum(y):
            r[1]=y
            if isgoodnum(z):
                r[2]=z
                if isgoodnum(w):
                    r[3]=w
    if r[3] > 0:
        return r
    else:
        raise ValueError('bad w argument to point()')

def ispoint(x):
    """ is it a point?"""
    return isvect(x) and x[3] > 0.0


# pretty printing string formatter for vectors and lists of vectors.
# Falls back to str() for anything else.
def vstr(a):
    """ utility function for recursively formatting vectors and lists of vectors
    """
    if not isinstance(a,(list,tuple)):
        return str(a)
    if isvect(list(a)):
        if abs(a[3]-1.0) > epsilon: # not in w=1
            return "[{}, {}, {}, {}]".format(a[0],a[1],a[2],a[3])
        return "[{}, {}, {}]".format(a[0],a[1],a[2])
    return "[" + ", ".join(vstr(x) for x in a) + "]"
